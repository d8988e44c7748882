from __future__ import annotations

from clockbot.core.normalize import (
    count_mojibake_bursts,
    normalize_for_compare,
    normalize_text,
    preprocess_transcribed,
    repair_mojibake,
    squash_dictated_letters,
)


def _mojibake(text: str) -> str:
    return text.encode("utf-8").decode("cp1251")


def test_normalize_text_folds_yo_and_punctuation() -> None:
    assert normalize_text("Ёлка, отчёт!!  (v2)") == "Елка отчет v2"
    assert normalize_for_compare("Проект: Apollo/17") == "проект apollo 17"
    assert normalize_text(None) == ""


def test_preprocess_transcribed_keeps_separators() -> None:
    out = preprocess_transcribed("«Apollo» слэш отчёт слеш 10:30/45")
    assert out == "Apollo / отчёт / 10:30 / 45"


def test_squash_dictated_letters() -> None:
    assert squash_dictated_letters("проект a p o l l o работа") == "проект APOLLO работа"
    # two letters are not a dictated word
    assert squash_dictated_letters("a b") == "a b"


def test_repair_mojibake_needs_six_bursts() -> None:
    source = "Проект: Apollo / Задача: отчёт / Начало: 10:30 / Длительность: 45"
    broken = _mojibake(source)
    assert count_mojibake_bursts(broken) >= 6
    assert repair_mojibake(broken) == source

    short = _mojibake("Проект")
    assert count_mojibake_bursts(short) < 6
    assert repair_mojibake(short) == short


def test_repair_mojibake_keeps_text_outside_codepage() -> None:
    # six bursts, but the emoji cannot be encoded back into cp1251
    weird = _mojibake("Проект отчёт") + " 🙂"
    assert count_mojibake_bursts(weird) >= 6
    assert repair_mojibake(weird) == weird
    assert repair_mojibake("") == ""
