"""Tests for per-taxon justification."""

import pytest

from taxonkey.core.exceptions import TaxonNotFoundError
from taxonkey.domain.models import AlgoOptions, JustificationStatus, Selection
from taxonkey.services.justification_service import JustificationService


@pytest.fixture
def service():
    return JustificationService()


def ids(items):
    return [item.trait_id for item in items]


def test_unknown_taxon_raises(service, cherry_matrix):
    with pytest.raises(TaxonNotFoundError):
        service.justify(cherry_matrix, "cerasus_x", Selection())


def test_empty_selection_is_all_unobserved(service, cherry_matrix):
    justification = service.justify(cherry_matrix, "cerasus_speciosa", Selection())
    assert len(justification.unobserved) == 4
    assert justification.match_count == 0
    assert justification.conflict_count == 0


def test_matches_and_conflicts(service, cherry_matrix):
    selection = Selection(selected={"bloom_before_leaves": 1, "calyx_urn_shaped": 1})
    justification = service.justify(cherry_matrix, "cerasus_speciosa", selection)

    assert ids(justification.matches) == ["bloom_before_leaves"]
    assert ids(justification.conflicts) == ["calyx_urn_shaped"]
    conflict = justification.conflicts[0]
    assert conflict.user_choice == "Yes"
    assert conflict.taxon_state == "No"
    assert conflict.status == JustificationStatus.CONFLICT


def test_observed_but_no_taxon_data_is_neutral(service, mammals_matrix):
    selection = Selection(selected={"tail_longer_than_body": 1})
    justification = service.justify(mammals_matrix, "pipistrellus_abramus", selection)
    assert ids(justification.neutral) == ["tail_longer_than_body"]
    assert justification.neutral[0].taxon_state == "NA"


def test_continuous_uses_tolerance(service, mammals_matrix):
    selection = Selection(selected={"body_mass_g": 11})
    strict_tol = service.justify(
        mammals_matrix, "pipistrellus_abramus", selection, AlgoOptions(tolerance_factor=0.0)
    )
    loose_tol = service.justify(
        mammals_matrix, "pipistrellus_abramus", selection, AlgoOptions(tolerance_factor=0.5)
    )
    assert ids(strict_tol.conflicts) == ["body_mass_g"]
    assert ids(loose_tol.matches) == ["body_mass_g"]
    assert loose_tol.matches[0].taxon_state == "5-10"


def test_derived_group_reported_once(service, mixed_matrix):
    justification = service.justify(
        mixed_matrix, "alpha", Selection(selected={"shape_round": 1})
    )
    all_ids = [
        item.trait_id
        for bucket in (
            justification.matches,
            justification.conflicts,
            justification.neutral,
            justification.unobserved,
        )
        for item in bucket
    ]
    assert all_ids.count("shape") == 1
    assert "shape_round" not in all_ids
    shape = next(i for i in justification.matches if i.trait_id == "shape")
    assert shape.trait_name == "Shape"
    assert shape.user_choice == "round"
    assert shape.taxon_state == "round"


def test_derived_group_conflict(service, mixed_matrix):
    justification = service.justify(mixed_matrix, "beta", Selection(selected={"shape_round": 1}))
    assert "shape" in ids(justification.conflicts)


def test_derived_explicit_no_only(service, mixed_matrix):
    ruled_out = service.justify(mixed_matrix, "beta", Selection(selected={"shape_long": -1}))
    still_possible = service.justify(mixed_matrix, "alpha", Selection(selected={"shape_long": -1}))
    assert "shape" in ids(ruled_out.conflicts)
    assert "shape" in ids(still_possible.matches)


def test_serialises_with_counts(service, cherry_matrix):
    justification = service.justify(
        cherry_matrix, "cerasus_itosakura", Selection(selected={"bloom_before_leaves": 1})
    )
    data = justification.model_dump(by_alias=True)
    assert data["taxonId"] == "cerasus_itosakura"
    assert data["matchCount"] == 1
    assert data["matches"][0]["traitName"] == "Flowers bloom before leaves"


def test_group_header_matched_by_name(service):
    from taxonkey.domain.models import Matrix, Taxon, Trait, TraitKind

    matrix = Matrix(
        traits=[
            Trait(id="leaf_shape", name="Leaf shape", group="Leaf"),
            Trait(
                id="leaf_ovate", name="Ovate", group="Leaf", kind=TraitKind.DERIVED,
                parent_id="Leaf shape", state="ovate",
            ),
            Trait(
                id="leaf_linear", name="Linear", group="Leaf", kind=TraitKind.DERIVED,
                parent_id="Leaf shape", state="linear",
            ),
        ],
        taxa=[Taxon(id="a", name="A", traits={"leaf_ovate": 1, "leaf_linear": -1})],
    )
    justification = service.justify(matrix, "a", Selection(selected={"leaf_ovate": 1}))

    assert ids(justification.matches) == ["leaf_shape"]
    assert justification.matches[0].trait_name == "Leaf shape"
    assert justification.unobserved == []
