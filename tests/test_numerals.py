from __future__ import annotations

from clockbot.core.numerals import (
    extract_numeric_markers,
    has_numeric_marker,
    parse_number_at,
    parse_number_token,
    parse_roman,
    replace_numbers_with_roman,
    strip_numeric_markers,
    to_roman,
    words_to_digits,
)


def test_roman_conversion() -> None:
    assert to_roman(17) == "xvii"
    assert to_roman(1994) == "mcmxciv"
    assert to_roman(0) == ""
    assert to_roman(4000) == ""
    assert parse_roman("XVII") == 17
    assert parse_roman("iv") == 4
    # adds up but is not canonical
    assert parse_roman("iiii") is None
    assert parse_roman("dim") is None
    assert parse_roman("apollo") is None


def test_number_words() -> None:
    assert parse_number_at(["двадцать", "два", "тридцать"], 0) == (22, 2)
    assert parse_number_at(["семнадцать"], 0) == (17, 1)
    assert parse_number_at(["forty", "five"], 0) == (45, 2)
    assert parse_number_at(["apollo"], 0) is None
    assert parse_number_token("две") == 2
    assert parse_number_token("12") == 12
    assert parse_number_token("") is None


def test_extract_numeric_markers_ordered_and_deduplicated() -> None:
    assert extract_numeric_markers("Apollo 17 XVII семнадцать 18") == ["17", "18"]
    assert extract_numeric_markers("павер апп двадцать пять") == ["25"]
    assert extract_numeric_markers("отчёт") == []
    assert has_numeric_marker("sprint ii")
    assert not has_numeric_marker("баги")


def test_strip_numeric_markers() -> None:
    assert strip_numeric_markers("павер апп 18") == "павер апп"
    assert strip_numeric_markers("Apollo двадцать один") == "apollo"


def test_replace_numbers_with_roman() -> None:
    assert replace_numbers_with_roman("Apollo 17") == "apollo xvii"
    assert replace_numbers_with_roman("аполло семнадцать") == "аполло xvii"
    assert replace_numbers_with_roman("отчёт") == "отчет"


def test_words_to_digits() -> None:
    assert words_to_digits("сорок пять минут") == "45 минут"
    assert words_to_digits("два часа десять минут") == "2 часа 10 минут"
