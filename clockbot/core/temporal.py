from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Final

from clockbot.config import ResolverConfig
from clockbot.core.errors import DurationParseError, FutureWeekdayError, TimeParseError
from clockbot.core.numerals import parse_number_at, parse_number_token, words_to_digits


SKEW_TOLERANCE = timedelta(minutes=5)

_DATE_ISO_RE = re.compile(r"(?<!\d)(\d{4})-(\d{1,2})-(\d{1,2})(?!\d)")
_DATE_FULL_RE = re.compile(r"(?<![\d.])(\d{1,2})\.(\d{1,2})\.(\d{4})(?![\d.])")
_DATE_SHORT_RE = re.compile(r"(?<![\d.:])(\d{1,2})\.(\d{1,2})(?![\d.:])")
_CLOCK_RE = re.compile(r"(?<![\d.:])(\d{1,2})[:.](\d{2})(?![\d.:])")
_COLON_CLOCK_RE = re.compile(r"(?<![\d.:])\d{1,2}:\d{2}(?![\d.:])")

_TODAY_RE = re.compile(r"(?<!\S)(?:сегодня|today)(?!\S)")
_DAY_BEFORE_YESTERDAY_RE = re.compile(r"(?<!\S)(?:позавчера|day before yesterday)(?!\S)")
_YESTERDAY_RE = re.compile(r"(?<!\S)(?:вчера|yesterday)(?!\S)")

WEEKDAY_RULES: Final[tuple[tuple[int, re.Pattern[str]], ...]] = (
    (1, re.compile(r"(?<!\S)(?:понедельник|понедельника|monday)(?!\S)")),
    (2, re.compile(r"(?<!\S)(?:вторник|вторника|tuesday)(?!\S)")),
    (3, re.compile(r"(?<!\S)(?:среда|среду|среды|wednesday)(?!\S)")),
    (4, re.compile(r"(?<!\S)(?:четверг|четверга|thursday)(?!\S)")),
    (5, re.compile(r"(?<!\S)(?:пятница|пятницу|пятницы|friday)(?!\S)")),
    (6, re.compile(r"(?<!\S)(?:суббота|субботу|субботы|saturday)(?!\S)")),
    (7, re.compile(r"(?<!\S)(?:воскресенье|воскресенья|sunday)(?!\S)")),
)

MORNING_WORDS: Final[frozenset[str]] = frozenset({"утра", "utra", "am"})
AFTERNOON_WORDS: Final[frozenset[str]] = frozenset({"дня", "вечера", "dnya", "vechera", "pm"})
NIGHT_WORDS: Final[frozenset[str]] = frozenset({"ночи", "nochi"})
MERIDIEM_WORDS: Final[frozenset[str]] = MORNING_WORDS | AFTERNOON_WORDS | NIGHT_WORDS

NOISE_WORDS: Final[frozenset[str]] = frozenset(
    {"начало", "время", "start", "at", "в", "во", "ровно", "около", "примерно", "about", "around"}
)
MINUTE_WORDS: Final[frozenset[str]] = frozenset(
    {"минута", "минуты", "минут", "минуту", "мин", "m", "min", "mins", "minute", "minutes"}
)
HOUR_WORDS: Final[frozenset[str]] = frozenset({"час", "часа", "часов", "ч", "hour", "hours"})

RU_HALF_TO_HOUR: Final[dict[str, int]] = {
    "первого": 1,
    "второго": 2,
    "третьего": 3,
    "четвертого": 4,
    "пятого": 5,
    "шестого": 6,
    "седьмого": 7,
    "восьмого": 8,
    "девятого": 9,
    "десятого": 10,
    "одиннадцатого": 11,
    "двенадцатого": 12,
}
_HALF_PAST_RE = re.compile(r"^(?:половин[аеуы]\s+|пол\s*)([а-я]+)$")
_HOUR_WORD_RE = re.compile(r"^час(?:\s+(.+))?$")

_HOUR_UNIT_WORDS = frozenset({"h", "hr", "hrs", "hour", "hours", "ч", "час", "часа", "часов"})
_MINUTE_UNIT_WORDS = frozenset(
    {"m", "min", "mins", "minute", "minutes", "м", "мин", "минута", "минуты", "минут", "минуту"}
)
_JOINERS = frozenset({"и", "and"})
_NEGATIVE_RE = re.compile(r"^\s*[-\u2212\u2013]\s*\d")
_LOOKS_LIKE_CLOCK_RE = re.compile(r"(?<![\d.:])\d{1,2}[:.]\d{2}(?![\d.:])")
_NUMBER_RE = re.compile(r"^\d+(?:\.\d+)?$")


def prepare(raw: str | None) -> str:
    """Lowercase, fold 'ё', keep ':' '.' '-' only between digits."""
    s = (raw or "").lower().replace("ё", "е")
    s = re.sub(r"(\d),(\d)", r"\1.\2", s)
    s = re.sub(r"[^\w\s:.\-]", " ", s)
    s = re.sub(r"(?<!\d)[:.\-]|[:.\-](?!\d)", " ", s)
    return " ".join(s.split())


@dataclass(frozen=True)
class DateAnchor:
    day: date
    explicit: bool
    remainder: str


def _make_date(year: int, month: int, day: int) -> date:
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise TimeParseError(f"Date not recognized: {day:02d}.{month:02d}.{year}") from exc


def _cut(text: str, match: re.Match[str]) -> str:
    return " ".join((text[: match.start()] + " " + text[match.end() :]).split())


def resolve_date(text: str, now_ref: datetime) -> DateAnchor:
    """Picks the calendar day a (prepared) start phrase refers to."""
    remainder = text
    explicit_day: date | None = None

    iso = _DATE_ISO_RE.search(remainder)
    full = _DATE_FULL_RE.search(remainder) if iso is None else None
    if iso:
        explicit_day = _make_date(int(iso.group(1)), int(iso.group(2)), int(iso.group(3)))
        remainder = _cut(remainder, iso)
    elif full:
        explicit_day = _make_date(int(full.group(3)), int(full.group(2)), int(full.group(1)))
        remainder = _cut(remainder, full)
    else:
        short = _DATE_SHORT_RE.search(remainder)
        # '10.30' alone is a time; 'DD.MM' counts as a date only next to an 'H:MM' clock
        if short and _COLON_CLOCK_RE.search(_cut(remainder, short)):
            explicit_day = _make_date(now_ref.year, int(short.group(2)), int(short.group(1)))
            remainder = _cut(remainder, short)

    has_dby = bool(_DAY_BEFORE_YESTERDAY_RE.search(remainder))
    remainder = " ".join(_DAY_BEFORE_YESTERDAY_RE.sub(" ", remainder).split())
    has_yesterday = bool(_YESTERDAY_RE.search(remainder))
    has_today = bool(_TODAY_RE.search(remainder))
    remainder = " ".join(_TODAY_RE.sub(" ", _YESTERDAY_RE.sub(" ", remainder)).split())

    weekday: int | None = None
    for iso_weekday, rx in WEEKDAY_RULES:
        if rx.search(remainder):
            if weekday is None:
                weekday = iso_weekday
            remainder = " ".join(rx.sub(" ", remainder).split())

    today = now_ref.date()
    if explicit_day is not None:
        return DateAnchor(explicit_day, True, remainder)
    if weekday is not None:
        if weekday > today.isoweekday():
            raise FutureWeekdayError()
        monday = today - timedelta(days=today.isoweekday() - 1)
        return DateAnchor(monday + timedelta(days=weekday - 1), True, remainder)
    if has_dby:
        return DateAnchor(today - timedelta(days=2), True, remainder)
    if has_yesterday:
        return DateAnchor(today - timedelta(days=1), True, remainder)
    return DateAnchor(today, has_today, remainder)


def _find_meridiem(text: str) -> str | None:
    for token in text.split():
        if token in MERIDIEM_WORDS:
            return token
    return None


def apply_meridiem(hour: int, meridiem: str | None) -> int:
    if not meridiem:
        return hour
    if meridiem in MORNING_WORDS or meridiem in NIGHT_WORDS:
        return 0 if hour == 12 else hour
    if meridiem in AFTERNOON_WORDS:
        return hour + 12 if hour < 12 else hour
    return hour


def apply_workday_heuristic(hour: int, meridiem: str | None) -> int:
    # nobody logs work that starts at 1-7 in the morning: "в 3" means 15:00
    if meridiem:
        return apply_meridiem(hour, meridiem)
    if 1 <= hour <= 7:
        return hour + 12
    return hour


def _strip_noise(text: str, drop_hour_words: bool) -> list[str]:
    out = []
    for token in text.split():
        if token in NOISE_WORDS or token in MINUTE_WORDS or token in MERIDIEM_WORDS:
            continue
        if drop_hour_words and token in HOUR_WORDS:
            continue
        out.append(token)
    return out


def _parse_minute_tokens(tokens: list[str]) -> int | None:
    if not tokens:
        return 0
    if len(tokens) == 1:
        value = parse_number_token(tokens[0])
        return value if value is not None and 0 <= value <= 59 else None
    if len(tokens) == 2 and not tokens[0].isdigit() and not tokens[1].isdigit():
        first = parse_number_token(tokens[0])
        second = parse_number_token(tokens[1])
        if first is None or second is None:
            return None
        combined = first + second
        return combined if 0 <= combined <= 59 else None
    return None


def _parse_hour_minute(tokens: list[str]) -> tuple[int, int] | None:
    if not tokens:
        return None
    head = tokens[0]
    if head.isdigit():
        if len(head) > 2:
            return None
        hour = int(head)
        rest = tokens[1:]
    else:
        compound = parse_number_at(tokens, 0)
        if compound is None:
            return None
        value, consumed = compound
        if consumed == 2 and value <= 23:
            hour, rest = value, tokens[2:]
        else:
            hour, rest = parse_number_token(head), tokens[1:]
            if hour is None:
                return None
    if hour > 23:
        return None
    minute = _parse_minute_tokens(rest)
    if minute is None:
        return None
    return hour, minute


def parse_natural_time(text: str) -> tuple[int, int] | None:
    """
    Время словами или цифрами без 'HH:MM':
    - 'пол второго' -> 13:30 (эвристика рабочего дня)
    - 'час тридцать' -> 13:30
    - 'десять сорок пять' -> 10:45
    - '9 30 утра' -> 09:30
    """
    clean = prepare(text)
    if not clean:
        return None
    meridiem = _find_meridiem(clean)
    soft = " ".join(_strip_noise(clean, drop_hour_words=False))
    if not soft:
        return None

    parsed: tuple[int, int] | None = None
    half = _HALF_PAST_RE.match(soft)
    if half and half.group(1) in RU_HALF_TO_HOUR:
        next_hour = RU_HALF_TO_HOUR[half.group(1)]
        parsed = (12 if next_hour == 1 else next_hour - 1, 30)
    else:
        hour_word = _HOUR_WORD_RE.match(soft)
        if hour_word:
            tail = (hour_word.group(1) or "").split()
            minute = _parse_minute_tokens(tail)
            parsed = (1, minute) if minute is not None else None
        else:
            parsed = _parse_hour_minute(_strip_noise(clean, drop_hour_words=True))

    if parsed is None:
        return None
    hour = apply_workday_heuristic(parsed[0], meridiem)
    minute = parsed[1]
    if hour > 23 or minute > 59:
        return None
    return hour, minute


def parse_time_of_day(text: str) -> tuple[int, int]:
    clean = prepare(text)
    clock = _CLOCK_RE.search(clean)
    if clock:
        hour = apply_meridiem(int(clock.group(1)), _find_meridiem(clean))
        minute = int(clock.group(2))
        if hour > 23 or minute > 59:
            raise TimeParseError()
        return hour, minute
    natural = parse_natural_time(clean)
    if natural is None:
        raise TimeParseError()
    return natural


def _reference_now(config: ResolverConfig, now: datetime | None) -> datetime:
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    return current.astimezone(config.reference_tz)


def resolve_start(raw: str, config: ResolverConfig, now: datetime | None = None) -> datetime:
    """Start phrase -> aware datetime in the reference timezone."""
    text = prepare(raw)
    if not text:
        raise TimeParseError()
    now_ref = _reference_now(config, now)
    anchor = resolve_date(text, now_ref)
    hour, minute = parse_time_of_day(anchor.remainder)

    tz = config.reference_tz
    start = datetime.combine(anchor.day, time(hour, minute), tzinfo=tz)
    if not anchor.explicit and start > now_ref + SKEW_TOLERANCE:
        # "в 23:50" sent at 00:02 belongs to yesterday
        start = start - timedelta(days=1)

    roundtrip = start.astimezone(timezone.utc).astimezone(tz)
    if roundtrip.replace(tzinfo=None) != start.replace(tzinfo=None):
        raise TimeParseError()
    return start


def is_time_expression(raw: str, config: ResolverConfig, now: datetime | None = None) -> bool:
    try:
        resolve_start(raw, config, now)
    except FutureWeekdayError:
        return True
    except TimeParseError:
        return False
    return True


def _prepare_duration(raw: str) -> str:
    source = prepare(raw)
    source = re.sub(r"(?<!\S)(?:полчаса|пол часа|half an hour|half hour)(?!\S)", "30 мин", source)
    source = re.sub(r"(?<!\S)полтора(?!\S)", "1.5", source)
    source = words_to_digits(source)
    source = re.sub(r"(\d)([a-zа-я])", r"\1 \2", source)
    source = re.sub(r"([a-zа-я])(\d)", r"\1 \2", source)
    tokens = source.split()
    out: list[str] = []
    for idx, token in enumerate(tokens):
        # bare "час" / "hour" means one hour
        if token in {"час", "hour"} and (idx == 0 or not _NUMBER_RE.match(tokens[idx - 1])):
            out.append("1")
        out.append(token)
    return " ".join(out)


def parse_duration_minutes(raw: str | None) -> int:
    """
    Длительность в минутах:
    - '1h 30m', '1,5 часа', 'сорок пять минут', 'час тридцать' (число после часов = минуты)
    - голое число = минуты
    - '1:30', отрицательные значения и лишние числа -> DurationParseError
    """
    if _NEGATIVE_RE.match(raw or ""):
        raise DurationParseError()
    source = _prepare_duration(raw or "")
    if not source or _LOOKS_LIKE_CLOCK_RE.search(source):
        # "1:30" could be a start time just as well; refuse to guess
        raise DurationParseError()

    tokens = source.split()
    hours = 0.0
    minutes = 0
    bare: list[str] = []
    has_unit = False
    after_hours = False
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if not _NUMBER_RE.match(token):
            after_hours = after_hours and token in _JOINERS
            i += 1
            continue
        unit = tokens[i + 1] if i + 1 < len(tokens) else ""
        value = float(token)
        if unit in _HOUR_UNIT_WORDS:
            hours += value
            has_unit, after_hours = True, True
            i += 2
        elif unit in _MINUTE_UNIT_WORDS:
            if not value.is_integer():
                raise DurationParseError()
            minutes += int(value)
            has_unit, after_hours = True, False
            i += 2
        elif after_hours and value.is_integer():
            minutes += int(value)
            after_hours = False
            i += 1
        else:
            bare.append(token)
            i += 1

    if has_unit and bare:
        raise DurationParseError()
    if not has_unit:
        if not source.isdigit():
            raise DurationParseError()
        minutes = int(source)

    total = round(hours * 60 + minutes)
    if total <= 0:
        raise DurationParseError()
    return int(total)


def is_duration_expression(raw: str) -> bool:
    try:
        parse_duration_minutes(raw)
    except DurationParseError:
        return False
    return True


def format_minutes(minutes: int) -> str:
    h, m = divmod(int(minutes), 60)
    if h > 0 and m > 0:
        return f"{h}h {m}m"
    if h > 0:
        return f"{h}h"
    return f"{m}m"
