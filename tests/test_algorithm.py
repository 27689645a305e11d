# tests/test_algorithm.py
from datetime import datetime

import pytest

from spaced_review.algorithm import (
    MAX_INTERVAL_DAYS,
    calculate_next_interval,
    calculate_next_review_date,
    calculate_system_mastery,
    calculate_urgency_score,
    default_base_intervals,
    determine_topic_status,
    round_half_up,
)
from spaced_review.domain import CompletedReviewData, ReviewResult, ReviewSettings, TopicStatus


@pytest.fixture
def settings():
    return ReviewSettings.create_default("settings-1", "user-1")


@pytest.fixture
def no_reset_settings():
    return ReviewSettings(id="s-1", user_id="u-1", base_intervals=[1, 7, 30], bad_reset=False)


def _completed(result, interval_days, day=1):
    return CompletedReviewData(
        result=result, interval_days=interval_days, completed_date=datetime(2025, 1, day)
    )


def test_round_half_up_ties_go_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(17.5) == 18
    assert round_half_up(5.25, 1) == 5.3


@pytest.mark.parametrize(
    "result,multiplier",
    [(ReviewResult.PERFECT, 2.5), (ReviewResult.GOOD, 2.0), (ReviewResult.REGULAR, 1.2)],
)
@pytest.mark.parametrize("interval", [1, 3, 7, 10, 45, 146, 200])
def test_next_interval_scales_by_multiplier(settings, result, multiplier, interval):
    expected = min(MAX_INTERVAL_DAYS, int(round_half_up(interval * multiplier)))
    assert calculate_next_interval(interval, result, settings) == expected


def test_next_interval_perfect(settings):
    assert calculate_next_interval(7, ReviewResult.PERFECT, settings) == 18  # 17.5 rounds up


def test_next_interval_regular_rounds(settings):
    assert calculate_next_interval(10, ReviewResult.REGULAR, settings) == 12
    assert calculate_next_interval(7, ReviewResult.REGULAR, settings) == 8


def test_next_interval_custom_multiplier():
    custom = ReviewSettings(id="s-1", user_id="u-1", perfect_multiplier=3.0)
    assert calculate_next_interval(10, ReviewResult.PERFECT, custom) == 30


@pytest.mark.parametrize("interval", [1, 7, 30, 200])
def test_bad_with_reset_returns_first_interval(settings, interval):
    assert calculate_next_interval(interval, ReviewResult.BAD, settings) == 1


def test_bad_with_reset_uses_custom_first_interval():
    custom = ReviewSettings(id="s-1", user_id="u-1", base_intervals=[3, 10])
    assert calculate_next_interval(60, ReviewResult.BAD, custom) == 3


def test_bad_with_reset_and_no_intervals_falls_back_to_one():
    custom = ReviewSettings(id="s-1", user_id="u-1", base_intervals=[])
    assert calculate_next_interval(60, ReviewResult.BAD, custom) == 1


def test_bad_without_reset_halves(no_reset_settings):
    assert calculate_next_interval(30, ReviewResult.BAD, no_reset_settings) == 15
    assert calculate_next_interval(5, ReviewResult.BAD, no_reset_settings) == 3


def test_bad_without_reset_never_below_one(no_reset_settings):
    assert calculate_next_interval(1, ReviewResult.BAD, no_reset_settings) == 1


def test_next_interval_capped_at_365(settings):
    assert calculate_next_interval(200, ReviewResult.PERFECT, settings) == 365


def test_next_interval_below_cap_untouched(settings):
    assert calculate_next_interval(100, ReviewResult.GOOD, settings) == 200


def test_next_review_date_adds_days():
    base = datetime(2025, 1, 15, 10, 0)
    assert calculate_next_review_date(base, 7) == datetime(2025, 1, 22, 10, 0)


def test_next_review_date_rolls_over_month_and_year():
    assert calculate_next_review_date(datetime(2025, 1, 28), 7) == datetime(2025, 2, 4)
    assert calculate_next_review_date(datetime(2024, 12, 30), 3) == datetime(2025, 1, 2)
    assert calculate_next_review_date(datetime(2024, 2, 27), 2) == datetime(2024, 2, 29)


def test_next_review_date_does_not_touch_input():
    base = datetime(2025, 6, 1)
    calculate_next_review_date(base, 30)
    assert base == datetime(2025, 6, 1)


def test_urgency_overdue():
    score = calculate_urgency_score(datetime(2025, 1, 1), 7, 5, datetime(2025, 1, 11))
    assert score == pytest.approx((11 / 7) * 6)


def test_urgency_due_today():
    now = datetime(2025, 1, 1)
    assert calculate_urgency_score(now, 7, 5, now) == pytest.approx((1 / 7) * 6)


def test_urgency_partial_day_is_not_overdue():
    score = calculate_urgency_score(datetime(2025, 1, 1), 7, 5, datetime(2025, 1, 1, 23, 0))
    assert score == pytest.approx((1 / 7) * 6)


def test_urgency_future_review_has_no_negative_overdue():
    score = calculate_urgency_score(datetime(2025, 1, 20), 7, 5, datetime(2025, 1, 10))
    assert score == pytest.approx((1 / 7) * 6)


def test_urgency_zero_mastery_counts_as_one():
    score = calculate_urgency_score(datetime(2025, 1, 1), 7, 0, datetime(2025, 1, 8))
    assert score == pytest.approx((8 / 7) * 10)


def test_urgency_zero_interval_treated_as_one():
    score = calculate_urgency_score(datetime(2025, 1, 1), 0, 5, datetime(2025, 1, 3))
    assert score == pytest.approx(3 * 6)


def test_urgency_monotonic_in_overdue_days():
    scheduled = datetime(2025, 1, 1)
    scores = [
        calculate_urgency_score(scheduled, 7, 5, datetime(2025, 1, day)) for day in range(1, 20)
    ]
    assert scores == sorted(scores)


def test_urgency_monotonic_in_mastery():
    scheduled, now = datetime(2025, 1, 1), datetime(2025, 1, 8)
    scores = [calculate_urgency_score(scheduled, 7, mastery, now) for mastery in range(1, 11)]
    assert scores == sorted(scores, reverse=True)


def test_urgency_monotonic_in_interval():
    scheduled, now = datetime(2025, 1, 1), datetime(2025, 1, 4)
    scores = [calculate_urgency_score(scheduled, interval, 5, now) for interval in (1, 3, 7, 30, 90)]
    assert scores == sorted(scores, reverse=True)


def test_mastery_empty_history_is_zero():
    assert calculate_system_mastery([]) == 0


def test_mastery_all_successful_three_reviews():
    reviews = [
        _completed(ReviewResult.PERFECT, 1, 1),
        _completed(ReviewResult.GOOD, 7, 8),
        _completed(ReviewResult.GOOD, 30, 28),
    ]
    # 0.6*3 + 1.0*3 + 1.0*3 + 1
    assert calculate_system_mastery(reviews) == 8.8


def test_mastery_mixed_results():
    reviews = [
        _completed(ReviewResult.BAD, 1, 1),
        _completed(ReviewResult.BAD, 1, 2),
        _completed(ReviewResult.GOOD, 7, 9),
    ]
    assert calculate_system_mastery(reviews) == pytest.approx(4.6, abs=0.05)


def test_mastery_single_perfect_review():
    assert calculate_system_mastery([_completed(ReviewResult.PERFECT, 1)]) == 5.2


def test_mastery_capped_at_ten():
    reviews = [
        _completed(ReviewResult.PERFECT, interval, day)
        for day, interval in enumerate((1, 7, 30, 90, 200), start=1)
    ]
    assert calculate_system_mastery(reviews) == 10


def test_mastery_regular_counts_as_unsuccessful():
    reviews = [_completed(ReviewResult.REGULAR, 7, day) for day in (1, 8, 15)]
    # 0.6*3 + 0 + 3*log2(8)/log2(31) + 0
    assert calculate_system_mastery(reviews) == 3.6


def test_mastery_is_rounded_to_one_decimal():
    mastery = calculate_system_mastery([_completed(ReviewResult.GOOD, 3)])
    assert mastery == round(mastery, 1)


def test_topic_status_threshold():
    assert determine_topic_status(0) is TopicStatus.IN_PROGRESS
    assert determine_topic_status(6.9) is TopicStatus.IN_PROGRESS
    assert determine_topic_status(7.0) is TopicStatus.MASTERED
    assert determine_topic_status(10) is TopicStatus.MASTERED


def test_default_base_intervals_returns_fresh_list():
    intervals = default_base_intervals()
    intervals.append(365)
    assert default_base_intervals() == [1, 7, 30, 90]
