"""Tests for the heuristic match-ratio scorer."""

import pytest

from taxonkey.domain.models import AlgoOptions, Selection
from taxonkey.services.matching import resolve_observations
from taxonkey.services.scoring import HeuristicScorer


def score(matrix, selection, strict=False, **opts):
    observations = resolve_observations(matrix, selection)
    return HeuristicScorer().score(matrix, observations, AlgoOptions(**opts), strict=strict)


def by_id(scores):
    return {s.taxon_id: s for s in scores}


def test_end_to_end_lenient(five_taxa_matrix):
    scores = by_id(score(five_taxa_matrix, Selection(selected={"t1": 1})))
    assert scores["A"].post == 1.0
    assert scores["B"].post == 0.0
    assert not scores["B"].excluded
    assert scores["C"].post == 0.0
    assert scores["C"].support == 0


def test_end_to_end_strict_excludes(five_taxa_matrix):
    scores = by_id(score(five_taxa_matrix, Selection(selected={"t1": 1}), strict=True))
    assert scores["A"].post == 1.0
    assert scores["B"].excluded
    assert scores["B"].post == 0.0


def test_single_conflict_zeroes_score_in_strict_mode(cherry_matrix):
    # speciosa agrees on three traits and contradicts one
    selection = Selection(
        selected={
            "bloom_before_leaves": 1,
            "petiole_nectar_glands": 1,
            "calyx_glabrous": 1,
            "calyx_urn_shaped": 1,
        }
    )
    lenient = by_id(score(cherry_matrix, selection))
    strict = by_id(score(cherry_matrix, selection, strict=True))

    assert lenient["cerasus_speciosa"].post == pytest.approx(0.75)
    assert lenient["cerasus_speciosa"].match == 3
    assert strict["cerasus_speciosa"].post == 0.0
    assert strict["cerasus_speciosa"].excluded


def test_ranked_by_score_then_id(cherry_matrix):
    scores = score(cherry_matrix, Selection(selected={"bloom_before_leaves": 1, "calyx_glabrous": 1}))
    keys = [(-s.post, s.taxon_id) for s in scores]
    assert keys == sorted(keys)
    assert scores[0].taxon_id == "cerasus_speciosa"


def test_distribution_normalises_scores(five_taxa_matrix):
    scorer = HeuristicScorer()
    observations = resolve_observations(five_taxa_matrix, Selection(selected={"t1": 1}))
    scores = scorer.score(five_taxa_matrix, observations, AlgoOptions())
    dist = scorer.distribution(scores)
    assert sum(dist.values()) == pytest.approx(1.0)
    assert dist["A"] == pytest.approx(1.0)


def test_distribution_all_zero_is_uniform(five_taxa_matrix):
    scorer = HeuristicScorer()
    scores = scorer.score(five_taxa_matrix, {}, AlgoOptions())
    dist = scorer.distribution(scores)
    assert all(p == pytest.approx(0.2) for p in dist.values())


def test_continuous_tolerance_applies(mixed_matrix):
    scores = by_id(score(mixed_matrix, Selection(selected={"length": 21.0}), tolerance_factor=0.1))
    assert scores["alpha"].post == 1.0
    assert scores["beta"].post == 0.0
