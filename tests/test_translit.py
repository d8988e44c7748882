from __future__ import annotations

from clockbot.core.translit import lat_to_ru, ru_to_lat, to_variants


def test_ru_to_lat_is_greedy_and_drops_signs() -> None:
    assert ru_to_lat("Щука") == "shchuka"
    assert ru_to_lat("Аполло") == "apollo"
    assert ru_to_lat("подъезд") == "podezd"


def test_lat_to_ru_prefers_longest_keys() -> None:
    assert lat_to_ru("shchuka") == "щука"
    assert lat_to_ru("zhuk") == "жук"
    assert lat_to_ru("apollo") == "аполло"


def test_to_variants_ordered_set() -> None:
    variants = to_variants("Apollo 17")
    assert variants[0] == "apollo 17"
    assert "аполло 17" in variants
    assert "apollo xvii" in variants
    assert "аполло xvii" in variants
    assert len(variants) == len(set(variants))
    assert to_variants("") == []
