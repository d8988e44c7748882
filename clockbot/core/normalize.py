from __future__ import annotations

import re


_YO_RE = re.compile(r"[Ёё]")
_PUNCT_RUN_RE = re.compile(r"[.,;:!?\"'`()\[\]{}<>|\\/]+")
_QUOTES_RE = re.compile(r"[“”«»\"]")
_SPOKEN_SLASH_RE = re.compile(r"(?<!\S)(?:слэш|слеш|slash)(?!\S)", flags=re.IGNORECASE)
_SLASH_RE = re.compile(r"\s*/\s*")
_DICTATED_RE = re.compile(r"\b(?:[A-Za-zА-Яа-яЁё]\s+){2,}[A-Za-zА-Яа-яЁё]\b")
_MOJIBAKE_BURST_RE = re.compile(r"[РС]\S")
MOJIBAKE_MIN_BURSTS = 6


def _collapse(value: str) -> str:
    return " ".join(value.split())


def normalize_text(value: str | None) -> str:
    """
    Канонизация для сравнения и поиска чисел:
    - 'ё' -> 'е'
    - любая серия пунктуации -> один пробел
    - лишние пробелы/переносы
    """
    if not value:
        return ""
    out = _YO_RE.sub(lambda m: "Е" if m.group(0) == "Ё" else "е", str(value))
    out = _PUNCT_RUN_RE.sub(" ", out)
    return _collapse(out)


def normalize_for_compare(value: str | None) -> str:
    return normalize_text(value).lower()


def preprocess_transcribed(value: str | None) -> str:
    """Cleans speech-to-text output while keeping ':' '.' and '/' separators."""
    if not value:
        return ""
    out = _QUOTES_RE.sub("", str(value))
    out = _SPOKEN_SLASH_RE.sub("/", out)
    out = _SLASH_RE.sub(" / ", out)
    return _collapse(out)


def squash_dictated_letters(value: str | None) -> str:
    """'a p o l l o' -> 'APOLLO' (names spelled letter by letter)."""
    if not value:
        return ""
    return _DICTATED_RE.sub(lambda m: "".join(m.group(0).split()).upper(), str(value))


def count_mojibake_bursts(text: str) -> int:
    return len(_MOJIBAKE_BURST_RE.findall(text or ""))


def repair_mojibake(text: str | None) -> str:
    """
    Чинит UTF-8, прочитанный как cp1251 ('РџСЂРѕРµРєС‚' -> 'Проект').

    Срабатывает только при >= 6 всплесках 'Р?'/'С?'. Если какой-то символ не
    кодируется в cp1251 или байты не собираются в UTF-8, возвращает текст как есть.
    """
    source = text or ""
    if not source or count_mojibake_bursts(source) < MOJIBAKE_MIN_BURSTS:
        return source
    try:
        decoded = source.encode("cp1251").decode("utf-8")
    except UnicodeError:
        return source
    return decoded if decoded.strip() else source
