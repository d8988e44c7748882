from __future__ import annotations

from typing import Final

from clockbot.core.normalize import normalize_for_compare
from clockbot.core.numerals import replace_numbers_with_roman


# Ordered pairs; multi-letter keys come first so the scan below stays greedy.
RU_TO_LAT: Final[tuple[tuple[str, str], ...]] = (
    ("щ", "shch"),
    ("ш", "sh"),
    ("ч", "ch"),
    ("ц", "ts"),
    ("ю", "yu"),
    ("я", "ya"),
    ("ж", "zh"),
    ("х", "kh"),
    ("ё", "yo"),
    ("й", "y"),
    ("а", "a"),
    ("б", "b"),
    ("в", "v"),
    ("г", "g"),
    ("д", "d"),
    ("е", "e"),
    ("з", "z"),
    ("и", "i"),
    ("к", "k"),
    ("л", "l"),
    ("м", "m"),
    ("н", "n"),
    ("о", "o"),
    ("п", "p"),
    ("р", "r"),
    ("с", "s"),
    ("т", "t"),
    ("у", "u"),
    ("ф", "f"),
    ("ы", "y"),
    ("э", "e"),
    ("ъ", ""),
    ("ь", ""),
)

LAT_TO_RU: Final[tuple[tuple[str, str], ...]] = (
    ("shch", "щ"),
    ("sch", "щ"),
    ("yo", "ё"),
    ("yu", "ю"),
    ("ya", "я"),
    ("zh", "ж"),
    ("kh", "х"),
    ("ts", "ц"),
    ("ch", "ч"),
    ("sh", "ш"),
    ("ee", "ии"),
    ("a", "а"),
    ("b", "б"),
    ("c", "к"),
    ("d", "д"),
    ("e", "е"),
    ("f", "ф"),
    ("g", "г"),
    ("h", "х"),
    ("i", "и"),
    ("j", "й"),
    ("k", "к"),
    ("l", "л"),
    ("m", "м"),
    ("n", "н"),
    ("o", "о"),
    ("p", "п"),
    ("q", "к"),
    ("r", "р"),
    ("s", "с"),
    ("t", "т"),
    ("u", "у"),
    ("v", "в"),
    ("w", "в"),
    ("x", "кс"),
    ("y", "й"),
    ("z", "з"),
)


def _longest_first(table: tuple[tuple[str, str], ...]) -> tuple[tuple[str, str], ...]:
    return tuple(sorted(table, key=lambda pair: -len(pair[0])))


_RU_TO_LAT_ORDERED = _longest_first(RU_TO_LAT)
_LAT_TO_RU_ORDERED = _longest_first(LAT_TO_RU)
_MAX_KEY = max(len(key) for key, _ in LAT_TO_RU)


def _transliterate(value: str, table: tuple[tuple[str, str], ...]) -> str:
    out: list[str] = []
    i = 0
    while i < len(value):
        window = value[i : i + _MAX_KEY]
        for key, repl in table:
            if window.startswith(key):
                out.append(repl)
                i += len(key)
                break
        else:
            out.append(value[i])
            i += 1
    return "".join(out)


def ru_to_lat(value: str | None) -> str:
    # normalize_for_compare already folds 'ё' into 'е'
    return _transliterate(normalize_for_compare(value), _RU_TO_LAT_ORDERED)


def lat_to_ru(value: str | None) -> str:
    return _transliterate(normalize_for_compare(value), _LAT_TO_RU_ORDERED)


def to_variants(value: str | None) -> list[str]:
    base = normalize_for_compare(value)
    variants: dict[str, None] = dict.fromkeys([base, ru_to_lat(base), lat_to_ru(base)])
    for current in list(variants):
        romanized = replace_numbers_with_roman(current)
        if romanized:
            variants[romanized] = None
    return [v for v in variants if v]
