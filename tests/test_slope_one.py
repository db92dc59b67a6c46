"""Tests for the Slope-One recommender."""

import pytest

from tearec.api.exceptions import NotTrainedError, UseFallbackError
from tearec.recommender.slope_one import (
    NO_DATA_SCORE,
    SlopeOneRecommender,
    build_difference_matrices,
)
from tests.conftest import A, B, C, make_item, make_order


@pytest.fixture
def recommender(order_items, orders) -> SlopeOneRecommender:
    recommender = SlopeOneRecommender()
    recommender.train(order_items, orders)
    return recommender


def test_frequencies_count_co_purchasing_users(recommender):
    assert recommender.frequencies == {
        A: {A: 2, B: 2, C: 1},
        B: {A: 2, B: 2, C: 1},
        C: {A: 1, B: 1, C: 2},
    }


def test_differences_are_mean_rating_differences(recommender):
    assert recommender.differences == {
        A: {A: 0.0, B: 0.5, C: -2.0},
        B: {A: -0.5, B: 0.0, C: -2.0},
        C: {A: 2.0, B: 2.0, C: 0.0},
    }


def test_matrices_are_co_indexed(recommender):
    assert recommender.differences.keys() == recommender.frequencies.keys()
    for item_id, row in recommender.differences.items():
        assert row.keys() == recommender.frequencies[item_id].keys()


def test_self_pairs_have_zero_difference():
    """A single rating normalizes to a self difference of 0."""
    matrices = build_difference_matrices({1: {A: 4.0}, 2: {A: 1.0}})

    assert matrices.frequencies[A][A] == 2
    assert matrices.differences[A][A] == 0.0


def test_training_twice_gives_identical_matrices(order_items, orders):
    first = SlopeOneRecommender()
    first.train(order_items, orders)
    second = SlopeOneRecommender()
    second.train(list(reversed(order_items)), list(reversed(orders)))

    assert first.differences == second.differences
    assert first.frequencies == second.frequencies


def test_user_vector_predicts_unseen_products(recommender):
    """User 1 never bought C: ((2 - 2) * 1 + (1 - 2) * 1) / 2."""
    scores = recommender.get_user_vector(recommender.snapshot, 1)

    assert scores == {A: 2.0, B: 1.0, C: -0.5}


def test_user_vector_returns_own_rating_for_bought_products(recommender):
    scores = recommender.get_user_vector(recommender.snapshot, 2)

    assert scores == {A: 1.0, B: 1.0, C: 3.0}


def test_missing_co_purchase_scores_sentinel():
    """P2 was never bought together with P1, so it gets -1.0."""
    orders = [make_order(1, 1), make_order(2, 2)]
    items = [make_item(1, 1, 101, 3), make_item(2, 2, 102, 1)]
    recommender = SlopeOneRecommender()
    recommender.train(items, orders)

    scores = recommender.get_user_vector(recommender.snapshot, 1)

    assert scores[102] == NO_DATA_SCORE == -1.0
    assert scores[101] == 3.0


def test_recommend_excludes_cart_and_orders_by_score(recommender):
    recommendations = recommender.recommend_products(1, [make_item(0, 0, A)])

    assert recommendations == [B, C]


def test_recommend_for_user_with_single_product(recommender):
    """User 3 bought only C; A and B are both predicted 1 + 2 = 3."""
    recommendations = recommender.recommend_products(3, [make_item(0, 0, C)])

    assert recommendations == [A, B]


def test_null_user_raises_use_fallback(recommender):
    with pytest.raises(UseFallbackError):
        recommender.recommend_products(None, [make_item(0, 0, A)])


def test_user_without_history_raises_use_fallback(recommender):
    with pytest.raises(UseFallbackError) as exc_info:
        recommender.recommend_products(99, [make_item(0, 0, A)])

    assert exc_info.value.details["user_id"] == 99


def test_untrained_recommender_raises_not_trained():
    with pytest.raises(NotTrainedError):
        SlopeOneRecommender().recommend_products(1, [make_item(0, 0, A)])


def test_empty_cart_skips_prediction(recommender, monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("execute must not run for an empty cart")

    monkeypatch.setattr(recommender, "execute", fail)

    assert recommender.recommend_products(1, []) == []


def test_max_recommendations_bounds_result(order_items, orders):
    recommender = SlopeOneRecommender(max_recommendations=1)
    recommender.train(order_items, orders)

    assert recommender.recommend_products(1, [make_item(0, 0, A)]) == [B]


def test_failed_preprocessing_keeps_previous_snapshot(order_items, orders, monkeypatch):
    recommender = SlopeOneRecommender()
    recommender.train(order_items, orders)
    previous = recommender.snapshot

    def broken(rating_matrix):
        raise RuntimeError("boom")

    monkeypatch.setattr(recommender, "execute_preprocessing", broken)
    with pytest.raises(RuntimeError):
        recommender.train(order_items[:2], orders[:1])

    assert recommender.snapshot is previous
    assert recommender.recommend_products(1, [make_item(0, 0, A)]) == [B, C]
