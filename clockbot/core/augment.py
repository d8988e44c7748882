from __future__ import annotations

import re

from clockbot.core.normalize import normalize_for_compare, normalize_text
from clockbot.core.numerals import extract_numeric_markers, has_numeric_marker, strip_numeric_markers


_PROJECT_LABEL_RE = re.compile(r"(?:^|\s)(?:project|проект)\s+", flags=re.IGNORECASE)
_NEXT_LABEL_RE = re.compile(
    r"\s(?:task|работа|задача|start|начало|время начала|duration|длительность)(?:\s|$)",
    flags=re.IGNORECASE,
)
_STEM_RE = re.compile(r"[^a-zа-я0-9]+")


def extract_project_label_segment(text: str) -> str:
    """Text after the first 'проект'/'project' label, up to the next field label."""
    source = normalize_text(text)
    m = _PROJECT_LABEL_RE.search(source)
    if not m:
        return ""
    segment = source[m.end() :].strip()
    stop = _NEXT_LABEL_RE.search(segment)
    if stop:
        segment = segment[: stop.start()].strip()
    return segment


def enrich_with_source_numerals(command_text: str, project_query: str) -> str:
    query = (project_query or "").strip()
    if not query:
        return query
    segment = extract_project_label_segment(command_text)
    if not segment:
        return query
    source_markers = extract_numeric_markers(segment)
    if not source_markers:
        return query

    query_markers = extract_numeric_markers(query)
    if not query_markers:
        return f"{query} {' '.join(source_markers)}".strip()
    if any(marker in source_markers for marker in query_markers):
        return query

    base = strip_numeric_markers(query)
    if not base:
        return f"{query} {' '.join(source_markers)}".strip()
    return f"{base} {' '.join(source_markers)}".strip()


def _stem(token: str) -> str:
    return _STEM_RE.sub("", token)


def enrich_with_embedded_numerals(command_text: str, project_query: str) -> str:
    query = (project_query or "").strip()
    if not query or has_numeric_marker(query):
        return query

    source_tokens = normalize_for_compare(command_text).split()
    query_stems = {_stem(t) for t in normalize_for_compare(query).split()} - {""}
    if not source_tokens or not query_stems:
        return query

    collected: list[str] = []
    for idx, token in enumerate(source_tokens):
        stem = _stem(token)
        if not stem:
            continue
        if not any(stem in q or q in stem for q in query_stems):
            continue
        # "powerapp 17": the number sits in the next one or two tokens
        window = " ".join(source_tokens[idx + 1 : idx + 3])
        for marker in extract_numeric_markers(window):
            if marker not in collected:
                collected.append(marker)

    if not collected:
        return query
    return f"{query} {' '.join(collected)}".strip()


def enrich_project_query_numerals(command_text: str, project_query: str) -> str:
    with_label = enrich_with_source_numerals(command_text, project_query)
    return enrich_with_embedded_numerals(command_text, with_label)
