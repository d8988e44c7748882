from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from clockbot.config import ResolverConfig
from clockbot.core.errors import DurationParseError, FutureWeekdayError, TimeParseError
from clockbot.core.temporal import (
    format_minutes,
    is_duration_expression,
    is_time_expression,
    parse_duration_minutes,
    parse_natural_time,
    prepare,
    resolve_start,
)


MSK = ZoneInfo("Europe/Moscow")
# Thursday, 18:00 in Moscow
NOW = datetime(2026, 3, 12, 15, 0, tzinfo=timezone.utc)


def _config(**overrides) -> ResolverConfig:
    values = dict(
        reference_timezone="Europe/Moscow",
        storage_timezone="UTC",
        interactive_selection=True,
        pending_ttl_sec=900,
        low_confidence_threshold=0.56,
        min_score_gap=0.08,
        no_match_threshold=0.35,
    )
    values.update(overrides)
    return ResolverConfig(**values)


def _msk(day: int, hour: int, minute: int) -> datetime:
    return datetime(2026, 3, day, hour, minute, tzinfo=MSK)


def test_prepare_keeps_separators_between_digits_only() -> None:
    assert prepare("Начало: 10:30, вчера!") == "начало 10:30 вчера"
    assert prepare("2026-03-05 1,5 ч") == "2026-03-05 1.5 ч"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("10:30", _msk(12, 10, 30)),
        ("10.30", _msk(12, 10, 30)),
        ("3:15", _msk(12, 3, 15)),
        ("в 3", _msk(12, 15, 0)),
        ("час тридцать", _msk(12, 13, 30)),
        ("в пол первого", _msk(12, 12, 30)),
        ("десять сорок пять", _msk(12, 10, 45)),
        ("12 утра", _msk(12, 0, 0)),
        ("сегодня 21:00", _msk(12, 21, 0)),
        ("вчера пол второго", _msk(11, 13, 30)),
        ("позавчера 9 30 утра", _msk(10, 9, 30)),
        ("в понедельник 10:00", _msk(9, 10, 0)),
        ("среду десять сорок пять", _msk(11, 10, 45)),
        ("yesterday 17:05", _msk(11, 17, 5)),
        ("2026-03-05 11:00", _msk(5, 11, 0)),
        ("05.03.2026 11:00", _msk(5, 11, 0)),
        ("05.03 11:00", _msk(5, 11, 0)),
    ],
)
def test_resolve_start(raw: str, expected: datetime) -> None:
    got = resolve_start(raw, _config(), NOW)
    assert got == expected
    assert got.utcoffset() == expected.utcoffset()


def test_explicit_clock_skips_afternoon_heuristic() -> None:
    for hour in range(1, 8):
        got = resolve_start(f"{hour:02d}:20", _config(), NOW)
        assert (got.hour, got.minute) == (hour, 20)


def test_skew_correction_rolls_back_without_date_cue() -> None:
    # 23:50 is still ahead of 18:00 today: it must be yesterday evening
    assert resolve_start("23:50", _config(), NOW) == _msk(11, 23, 50)
    assert resolve_start("9 вечера", _config(), NOW) == _msk(11, 21, 0)
    # within five minutes of now is kept
    assert resolve_start("18:04", _config(), NOW) == _msk(12, 18, 4)


def test_future_weekday_is_rejected() -> None:
    with pytest.raises(FutureWeekdayError) as exc:
        resolve_start("в пятницу 10:00", _config(), NOW)
    assert "прошедшую часть текущей недели" in str(exc.value)
    with pytest.raises(FutureWeekdayError):
        resolve_start("sunday 9:00", _config(), NOW)


def test_unrecognized_start_raises() -> None:
    for raw in ("", "apollo", "вчера", "25:00", "31.02.2026 10:00", "десять и ещё немного"):
        with pytest.raises(TimeParseError):
            resolve_start(raw, _config(), NOW)


def test_dst_gap_is_rejected() -> None:
    config = _config(reference_timezone="Europe/Berlin")
    now = datetime(2026, 3, 29, 12, 0, tzinfo=timezone.utc)
    with pytest.raises(TimeParseError):
        resolve_start("2026-03-29 02:30", config, now)


def test_parse_natural_time_direct() -> None:
    assert parse_natural_time("полвторого") == (13, 30)
    assert parse_natural_time("половина третьего") == (14, 30)
    assert parse_natural_time("двадцать два тридцать") == (22, 30)
    assert parse_natural_time("около 10 часов") == (10, 0)
    assert parse_natural_time("apollo 17") is None


def test_is_time_expression_counts_future_weekday() -> None:
    assert is_time_expression("в пятницу 10:00", _config(), NOW)
    assert is_time_expression("10:30", _config(), NOW)
    assert not is_time_expression("Apollo", _config(), NOW)
    assert not is_time_expression("1h 30m", _config(), NOW)


@pytest.mark.parametrize(
    ("raw", "minutes"),
    [
        ("1h 30m", 90),
        ("1h30m", 90),
        ("1 ч 30 мин", 90),
        ("1.5h", 90),
        ("1,5 часа", 90),
        ("2 часа", 120),
        ("45", 45),
        ("45m", 45),
        ("сорок пять минут", 45),
        ("полтора часа", 90),
        ("полчаса", 30),
        ("час", 60),
        ("час пятнадцать минут", 75),
        ("два часа десять минут", 130),
        ("час тридцать", 90),
        ("2 часа 15", 135),
        ("1ч30", 90),
        ("час и пятнадцать минут", 75),
    ],
)
def test_parse_duration_minutes(raw: str, minutes: int) -> None:
    assert parse_duration_minutes(raw) == minutes


def test_parse_duration_rejects_ambiguous_values() -> None:
    for raw in ("1:30", "1.30", "Apollo 17", "0", "0m", "", "долго", "-5", "-45 мин", "2 часа 15 10", "15 2 часа"):
        with pytest.raises(DurationParseError):
            parse_duration_minutes(raw)
    assert not is_duration_expression("отчёт")
    assert is_duration_expression("45 мин")


def test_format_minutes_round_trip() -> None:
    assert format_minutes(90) == "1h 30m"
    assert format_minutes(120) == "2h"
    assert format_minutes(45) == "45m"
    for minutes in (1, 5, 45, 59, 60, 61, 90, 125, 600, 1439):
        assert parse_duration_minutes(format_minutes(minutes)) == minutes
