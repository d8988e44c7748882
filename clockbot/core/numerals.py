from __future__ import annotations

import re
from types import MappingProxyType
from typing import Final, Mapping

from clockbot.core.normalize import normalize_for_compare


# =========================
# Числительные словами
# =========================
RU_UNITS: Final[Mapping[str, int]] = MappingProxyType({
    "ноль": 0,
    "нуль": 0,
    "один": 1,
    "одна": 1,
    "два": 2,
    "две": 2,
    "три": 3,
    "четыре": 4,
    "пять": 5,
    "шесть": 6,
    "семь": 7,
    "восемь": 8,
    "девять": 9,
})

RU_TEENS: Final[Mapping[str, int]] = MappingProxyType({
    "десять": 10,
    "одиннадцать": 11,
    "двенадцать": 12,
    "тринадцать": 13,
    "четырнадцать": 14,
    "пятнадцать": 15,
    "шестнадцать": 16,
    "семнадцать": 17,
    "восемнадцать": 18,
    "девятнадцать": 19,
})

RU_TENS: Final[Mapping[str, int]] = MappingProxyType({
    "двадцать": 20,
    "тридцать": 30,
    "сорок": 40,
    "пятьдесят": 50,
    "шестьдесят": 60,
    "семьдесят": 70,
    "восемьдесят": 80,
    "девяносто": 90,
})

EN_UNITS: Final[Mapping[str, int]] = MappingProxyType({
    "zero": 0,
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
})

EN_TEENS: Final[Mapping[str, int]] = MappingProxyType({
    "ten": 10,
    "eleven": 11,
    "twelve": 12,
    "thirteen": 13,
    "fourteen": 14,
    "fifteen": 15,
    "sixteen": 16,
    "seventeen": 17,
    "eighteen": 18,
    "nineteen": 19,
})

EN_TENS: Final[Mapping[str, int]] = MappingProxyType({
    "twenty": 20,
    "thirty": 30,
    "forty": 40,
    "fifty": 50,
    "sixty": 60,
    "seventy": 70,
    "eighty": 80,
    "ninety": 90,
})

_LANGUAGES: Final[tuple[tuple[Mapping[str, int], Mapping[str, int], Mapping[str, int]], ...]] = (
    (RU_UNITS, RU_TEENS, RU_TENS),
    (EN_UNITS, EN_TEENS, EN_TENS),
)

ROMAN_TABLE: Final[tuple[tuple[int, str], ...]] = (
    (1000, "M"),
    (900, "CM"),
    (500, "D"),
    (400, "CD"),
    (100, "C"),
    (90, "XC"),
    (50, "L"),
    (40, "XL"),
    (10, "X"),
    (9, "IX"),
    (5, "V"),
    (4, "IV"),
    (1, "I"),
)
_ROMAN_VALUES: Final[Mapping[str, int]] = MappingProxyType(
    {"I": 1, "V": 5, "X": 10, "L": 50, "C": 100, "D": 500, "M": 1000}
)

_DIGITS_RE = re.compile(r"^\d{1,4}$")
_ROMAN_RE = re.compile(r"^[ivxlcdm]{1,8}$", flags=re.IGNORECASE)


def to_roman(num: int) -> str:
    if not isinstance(num, int) or num <= 0 or num > 3999:
        return ""
    value = num
    out = []
    for arabic, roman in ROMAN_TABLE:
        while value >= arabic:
            out.append(roman)
            value -= arabic
    return "".join(out).lower()


def parse_roman(token: str) -> int | None:
    if not token or not _ROMAN_RE.match(token):
        return None
    src = token.upper()
    total = 0
    for idx, ch in enumerate(src):
        cur = _ROMAN_VALUES[ch]
        nxt = _ROMAN_VALUES.get(src[idx + 1], 0) if idx + 1 < len(src) else 0
        total += -cur if cur < nxt else cur
    if total <= 0:
        return None
    # 'dim', 'mid' and friends add up to something but are not numerals
    if to_roman(total) != token.lower():
        return None
    return total


def parse_number_at(tokens: list[str], index: int) -> tuple[int, int] | None:
    """Number word at ``tokens[index]``: returns (value, tokens consumed)."""
    if index >= len(tokens):
        return None
    one = tokens[index]
    two = tokens[index + 1] if index + 1 < len(tokens) else ""
    for units, teens, tens in _LANGUAGES:
        if one in teens:
            return teens[one], 1
        if one in tens:
            base = tens[one]
            if two and two in units:
                return base + units[two], 2
            return base, 1
        if one in units:
            return units[one], 1
    return None


def parse_number_token(token: str) -> int | None:
    """Single token as a number: digits or one number word."""
    if not token:
        return None
    if token.isdigit():
        return int(token)
    parsed = parse_number_at([token], 0)
    return parsed[0] if parsed else None


def _scan(text: str | None):
    # yields (token, value | None, consumed)
    source = normalize_for_compare(text)
    tokens = [t for t in source.split(" ") if t]
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if _DIGITS_RE.match(token):
            yield token, int(token), 1
            i += 1
            continue
        roman = parse_roman(token)
        if roman is not None:
            yield token, roman, 1
            i += 1
            continue
        parsed = parse_number_at(tokens, i)
        if parsed is not None:
            value, consumed = parsed
            yield " ".join(tokens[i : i + consumed]), value, consumed
            i += consumed
            continue
        yield token, None, 1
        i += 1


def extract_numeric_markers(text: str | None) -> list[str]:
    values: list[str] = []
    seen: set[str] = set()
    for _, value, _ in _scan(text):
        if value is None:
            continue
        key = str(value)
        if key not in seen:
            seen.add(key)
            values.append(key)
    return values


def has_numeric_marker(text: str | None) -> bool:
    return bool(extract_numeric_markers(text))


def strip_numeric_markers(text: str | None) -> str:
    kept = [token for token, value, _ in _scan(text) if value is None]
    return " ".join(kept).strip()


def replace_numbers_with_roman(value: str | None) -> str:
    """'apollo 17' / 'аполло семнадцать' -> 'apollo xvii' / 'аполло xvii'."""
    source = normalize_for_compare(value)
    if not source:
        return ""
    out: list[str] = []
    changed = False
    tokens = [t for t in source.split(" ") if t]
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if _DIGITS_RE.match(token):
            roman = to_roman(int(token))
            if roman:
                out.append(roman)
                changed = True
                i += 1
                continue
        parsed = parse_number_at(tokens, i)
        if parsed is not None:
            roman = to_roman(parsed[0])
            if roman:
                out.append(roman)
                changed = True
                i += parsed[1]
                continue
        out.append(token)
        i += 1
    return " ".join(out) if changed else source


def words_to_digits(value: str) -> str:
    """'сорок пять минут' -> '45 минут'; other tokens are kept as they are."""
    tokens = value.split()
    out: list[str] = []
    i = 0
    while i < len(tokens):
        parsed = parse_number_at(tokens, i)
        if parsed is not None:
            out.append(str(parsed[0]))
            i += parsed[1]
            continue
        out.append(tokens[i])
        i += 1
    return " ".join(out)
