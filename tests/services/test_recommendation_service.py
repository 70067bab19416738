"""Tests for next-trait recommendation."""

import math

import pytest

from taxonkey.core.config import RecommenderConfig
from taxonkey.domain.models import AlgoOptions, Selection
from taxonkey.services.matching import resolve_observations
from taxonkey.services.recommendation_service import RecommendationService


@pytest.fixture
def service():
    return RecommendationService(RecommenderConfig())


def uniform(matrix):
    return {t.id: 1.0 for t in matrix.taxa}


def recommend(service, matrix, selection=None, distribution=None, **opts):
    observations = resolve_observations(matrix, selection or Selection())
    return service.recommend(
        matrix, observations, distribution or uniform(matrix), AlgoOptions(**opts)
    )


def by_id(suggestions):
    return {s.trait_id: s for s in suggestions}


class TestStatistics:
    def test_balanced_binary_split(self, service, cherry_matrix):
        suggestions = by_id(recommend(service, cherry_matrix))
        bloom = suggestions["bloom_before_leaves"]

        h0 = math.log2(3)
        assert bloom.ig == pytest.approx(h0 - 2 / 3)
        assert bloom.max_ig == pytest.approx(h0)
        assert bloom.ecr == pytest.approx(4 / 9)
        assert bloom.entropy == pytest.approx(-(2 / 3) * math.log2(2 / 3) - (1 / 3) * math.log2(1 / 3))
        assert bloom.gini == pytest.approx(1 - (4 / 9 + 1 / 9))
        assert {p.state: p.p for p in bloom.p_states} == pytest.approx({"Yes": 2 / 3, "No": 1 / 3})
        assert bloom.known_fraction == pytest.approx(1.0)

    def test_even_split_is_one_bit(self, service, mixed_matrix):
        wings = by_id(recommend(service, mixed_matrix))["wings"]
        assert wings.ig == pytest.approx(1.0)

    def test_missing_data_dilutes_gain(self, service, mixed_matrix):
        spots = by_id(recommend(service, mixed_matrix))["wing_spots"]
        assert spots.known_fraction == pytest.approx(0.5)
        assert spots.ig == pytest.approx(0.5)
        assert {p.state: p.p for p in spots.p_states} == pytest.approx({"Yes": 0.5, "No": 0.5})

    def test_pstates_sum_to_one(self, service, mixed_matrix):
        for suggestion in recommend(service, mixed_matrix):
            assert sum(p.p for p in suggestion.p_states) == pytest.approx(1.0)

    @pytest.mark.parametrize(
        "weights",
        [
            [1, 1, 1, 1],
            [0.97, 0.01, 0.01, 0.01],
            [1, 0, 0, 0],
            [0.4, 0.3, 0.2, 0.1],
            [0, 0, 0, 0],
        ],
    )
    def test_information_gain_never_negative(self, service, mixed_matrix, weights):
        distribution = {t.id: w for t, w in zip(mixed_matrix.taxa, weights)}
        for suggestion in recommend(service, mixed_matrix, distribution=distribution):
            assert suggestion.ig >= 0
            assert suggestion.max_ig >= 0

    def test_settled_distribution_has_no_gain(self, service, cherry_matrix):
        distribution = {"cerasus_jamasakura": 1.0}
        for suggestion in recommend(service, cherry_matrix, distribution=distribution):
            assert suggestion.ig == pytest.approx(0.0)


class TestUnits:
    def test_resolved_traits_are_skipped(self, service, mixed_matrix):
        selection = Selection(
            selected={"wings": 1, "length": 0},
            selected_na={"habitat": True},
        )
        ids = set(by_id(recommend(service, mixed_matrix, selection)))
        assert "wings" not in ids
        assert "length" not in ids
        assert "habitat" not in ids
        assert {"wing_spots", "colours", "shape"} <= ids

    def test_derived_group_is_one_unit(self, service, mixed_matrix):
        suggestions = by_id(recommend(service, mixed_matrix))
        assert "shape_round" not in suggestions
        shape = suggestions["shape"]
        assert shape.name == "Shape"
        assert {p.state: p.p for p in shape.p_states} == pytest.approx({"round": 1 / 3, "long": 2 / 3})

    def test_derived_group_resolved_by_yes(self, service, mixed_matrix):
        ids = set(by_id(recommend(service, mixed_matrix, Selection(selected={"shape_round": 1}))))
        assert "shape" not in ids

    def test_derived_group_open_after_single_no(self, service, mixed_matrix):
        ids = set(by_id(recommend(service, mixed_matrix, Selection(selected={"shape_round": -1}))))
        assert "shape" in ids

    def test_continuous_trait_is_binned(self, service, mixed_matrix):
        length = by_id(recommend(service, mixed_matrix))["length"]
        assert [p.state for p in length.p_states] == ["[0, 10]", "[10, 20]", "[20, 30]", "[30, 40]"]
        p = {s.state: s.p for s in length.p_states}
        # gamma -> bin 0, alpha -> bin 1, beta spans bins 2 and 3
        assert p["[0, 10]"] == pytest.approx(1 / 3)
        assert p["[10, 20]"] == pytest.approx(1 / 3)
        assert p["[20, 30]"] == pytest.approx(1 / 6)

    def test_bins_for_edges(self):
        import numpy as np

        edges = np.array([0.0, 10.0, 20.0, 30.0, 40.0])
        assert RecommendationService._bins_for(10, 20, edges) == [1]
        assert RecommendationService._bins_for(20, 20, edges) == [2]
        assert RecommendationService._bins_for(40, 40, edges) == [3]
        assert RecommendationService._bins_for(-5, 100, edges) == [0, 1, 2, 3]

    def test_categorical_states(self, service, mixed_matrix):
        habitat = by_id(recommend(service, mixed_matrix))["habitat"]
        p = {s.state: s.p for s in habitat.p_states}
        assert p == pytest.approx({"forest": 1 / 3, "meadow": 1 / 2, "wetland": 1 / 6})

    def test_empty_matrix(self, service):
        from taxonkey.domain.models import Matrix

        assert service.recommend(Matrix(), {}, {}, AlgoOptions()) == []


class TestScoring:
    def test_ties_sorted_by_name(self, service, cherry_matrix):
        suggestions = recommend(service, cherry_matrix)
        assert [s.name for s in suggestions] == [
            "Calyx tube is glabrous",
            "Calyx tube is urn-shaped",
            "Flowers bloom before leaves",
            "Nectar glands on petiole",
        ]
        assert all(s.score == pytest.approx(s.ig) for s in suggestions)

    def test_pragmatic_score_penalises_difficulty(self, service, cherry_matrix):
        suggestions = recommend(service, cherry_matrix, use_pragmatic_score=True)
        assert suggestions[-1].trait_id == "calyx_urn_shaped"
        urn = by_id(suggestions)["calyx_urn_shaped"]
        # difficulty hard (2), default risk 0.5
        assert urn.score == pytest.approx(urn.ig / (2.0 * 0.5))

    def test_pragmatic_floors(self):
        from taxonkey.domain.models import TraitSuggestion

        service = RecommendationService(RecommenderConfig(min_difficulty=0.1, min_certainty=0.05))
        suggestion = TraitSuggestion(trait_id="t", name="t", ig=1.0, difficulty=0.0, risk=1.0)
        score = service._score(suggestion, 1.0, AlgoOptions(use_pragmatic_score=True))
        assert score == pytest.approx(1.0 / (0.1 * 0.05))

    def test_max_ig_strategy(self, service, cherry_matrix):
        for s in recommend(service, cherry_matrix, recommendation_strategy="max_ig"):
            assert s.score == pytest.approx(s.max_ig)


class TestDependencies:
    def test_unresolved_parent_discounts_by_share(self, service, mixed_matrix):
        spots = by_id(recommend(service, mixed_matrix, apply_dependencies=True))["wing_spots"]
        assert spots.dependency_factor == pytest.approx(0.5)
        assert spots.score == pytest.approx(spots.ig * 0.5)

    def test_parent_showing_required_state(self, service, mixed_matrix):
        spots = by_id(
            recommend(service, mixed_matrix, Selection(selected={"wings": 1}), apply_dependencies=True)
        )["wing_spots"]
        assert spots.dependency_factor == 1.0

    def test_parent_contradicting_required_state(self, service, mixed_matrix):
        spots = by_id(
            recommend(service, mixed_matrix, Selection(selected={"wings": -1}), apply_dependencies=True)
        )["wing_spots"]
        assert spots.dependency_factor == 0.0
        assert spots.score == 0.0

    def test_parent_marked_na_falls_back_to_share(self, service, mixed_matrix):
        spots = by_id(
            recommend(
                service, mixed_matrix, Selection(selected_na={"wings": True}), apply_dependencies=True
            )
        )["wing_spots"]
        assert spots.dependency_factor == pytest.approx(0.5)
        assert spots.score == pytest.approx(spots.ig * 0.5)
        assert spots.score > 0

    def test_dependencies_ignored_unless_enabled(self, service, mixed_matrix):
        spots = by_id(recommend(service, mixed_matrix))["wing_spots"]
        assert spots.dependency_factor == 1.0


class TestGroupHeaders:
    @pytest.fixture
    def named_group_matrix(self):
        from taxonkey.domain.models import Matrix, Taxon, Trait, TraitKind

        return Matrix(
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
            taxa=[
                Taxon(id="a", name="A", traits={"leaf_ovate": 1, "leaf_linear": -1}),
                Taxon(id="b", name="B", traits={"leaf_ovate": -1, "leaf_linear": 1}),
            ],
        )

    def test_header_matched_by_name(self, service, named_group_matrix):
        suggestions = recommend(service, named_group_matrix)
        assert [s.trait_id for s in suggestions] == ["leaf_shape"]
        assert suggestions[0].name == "Leaf shape"
        assert {p.state for p in suggestions[0].p_states} == {"ovate", "linear"}
