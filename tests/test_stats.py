"""Set statistics and week labels."""

from brainwash.stats import SetStats, stats_from_values, week_label, week_starts


def test_stats_from_values():
    assert stats_from_values([10, 12, 15]) == SetStats(best=15, avg=12.33, worst=10)


def test_stats_average_rounds_half_up():
    # 9 / 8 = 1.125
    assert stats_from_values([1, 1, 1, 1, 1, 1, 1, 2]).avg == 1.13
    # 5 / 8 = 0.625
    assert stats_from_values([0, 0, 0, 1, 1, 1, 1, 1]).avg == 0.63


def test_stats_single_value():
    assert stats_from_values([30]) == SetStats(30, 30.0, 30)


def test_stats_empty():
    assert stats_from_values([]) == SetStats(None, None, None)


def test_stats_accepts_generators():
    assert stats_from_values(v for v in (1, 2)).avg == 1.5


def test_week_label():
    assert week_label("2024-03-04", "2024-03-10") == "Mar 4 - Mar 10"
    assert week_label("2024-02-26", "2024-03-03") == "Feb 26 - Mar 3"


def test_week_starts_current_week_first():
    assert week_starts("2024-03-06", 3) == ["2024-03-04", "2024-02-26", "2024-02-19"]


def test_week_starts_from_sunday():
    assert week_starts("2024-03-10", 1) == ["2024-03-04"]
