"""Tests for numeric helpers."""

import math

import numpy as np
import pytest

from taxonkey.services.scoring.math_utils import (
    count_above,
    gini_impurity,
    normalize,
    shannon_entropy,
    softmax_log,
)


def test_normalize():
    assert normalize([1, 3]) == pytest.approx([0.25, 0.75])


def test_normalize_degenerate_is_uniform():
    assert normalize([0, 0, 0, 0]) == pytest.approx([0.25] * 4)
    assert normalize([math.nan, -1]) == pytest.approx([0.5, 0.5])
    assert normalize([]).size == 0


def test_softmax_log_matches_direct_normalisation():
    weights = np.array([0.2, 0.5, 0.3])
    assert softmax_log(np.log(weights)) == pytest.approx(weights)


def test_softmax_log_stable_for_large_magnitudes():
    post = softmax_log([-1000.0, -1001.0])
    assert post.sum() == pytest.approx(1.0)
    assert post[0] > post[1]


def test_softmax_log_all_minus_infinity_is_uniform():
    assert softmax_log([-math.inf, -math.inf]) == pytest.approx([0.5, 0.5])


def test_softmax_log_minus_infinity_gets_zero_mass():
    post = softmax_log([0.0, -math.inf])
    assert post[1] == 0.0


def test_entropy():
    assert shannon_entropy([0.5, 0.5]) == pytest.approx(1.0)
    assert shannon_entropy([1.0, 0.0]) == 0.0
    assert shannon_entropy([0.25] * 4) == pytest.approx(2.0)


def test_gini():
    assert gini_impurity([0.5, 0.5]) == pytest.approx(0.5)
    assert gini_impurity([1.0]) == 0.0


def test_count_above():
    assert count_above([0.5, 0.01, 0.009], 0.01) == 2
