from __future__ import annotations

import re
from datetime import datetime
from typing import Final

from loguru import logger

from clockbot.config import ResolverConfig
from clockbot.core.errors import FormatError
from clockbot.core.normalize import (
    normalize_for_compare,
    preprocess_transcribed,
    repair_mojibake,
    squash_dictated_letters,
)
from clockbot.core.temporal import is_duration_expression, is_time_expression
from clockbot.core.types import CommandCandidate


# =========================
# Метки полей (RU/EN)
# =========================
LABEL_KINDS: Final[dict[str, str]] = {
    "проект": "project",
    "project": "project",
    "работа": "task",
    "задача": "task",
    "task": "task",
    "время начала": "start",
    "начало": "start",
    "start time": "start",
    "start": "start",
    "длительность": "duration",
    "duration": "duration",
}

FIELD_BY_KIND: Final[dict[str, str]] = {
    "project": "project_query",
    "task": "task_query",
    "start": "start_raw",
    "duration": "duration_raw",
}

# longer phrases first: "время начала" must win over "начало", "start time" over "start"
_LABEL_ALT = "|".join(re.escape(k) for k in sorted(LABEL_KINDS, key=len, reverse=True))
_LABEL_RE = re.compile(rf"(?<!\w)({_LABEL_ALT})(?=[\s:.,;\-]|$)", flags=re.IGNORECASE)
_LABELED_PART_RE = re.compile(rf"^\s*({_LABEL_ALT})\s*:\s*(.+?)\s*$", flags=re.IGNORECASE | re.DOTALL)
_VALUE_TRIM = " \t\r\n:.,;!?-/"


def _field_label_re(kind: str) -> re.Pattern[str]:
    words = sorted((k for k, v in LABEL_KINDS.items() if v == kind), key=len, reverse=True)
    alt = "|".join(re.escape(w) for w in words)
    return re.compile(rf"^\s*(?:{alt})(?![^\W\d_])\s*[:\-]?\s*", flags=re.IGNORECASE)


_FIELD_LABEL_RES: Final[dict[str, re.Pattern[str]]] = {kind: _field_label_re(kind) for kind in FIELD_BY_KIND}

_TRIGGER_RE = re.compile(
    r"^\s*(?:занеси|занести|добавь|добавить)\s+(?:в\s+)?cl(?:o|oc)kify\s*[.:,\-]?\s*",
    flags=re.IGNORECASE,
)
_ADD_TO_RE = re.compile(r"^\s*add\s+to\s+clockify\s*[.:,\-]?\s*", flags=re.IGNORECASE)
_SUPPORTED_PREFIX_RE = re.compile(
    r"(?:^|\s)(?:занеси|занести|добавь|добавить)\s+.*cl(?:o|oc)kify(?:\s|$)|(?:^|\s)add\s+to\s+clockify(?:\s|$)"
)

_HAS_PROJECT_RE = re.compile(r"(?:^|\s)(?:проект|project)(?:\s|:|$)")
_HAS_TASK_RE = re.compile(r"(?:^|\s)(?:работа|задача|task)(?:\s|:|$)")
_HAS_START_RE = re.compile(r"(?:^|\s)(?:время начала|начало|start)(?:\s|:|$)")
_HAS_DURATION_RE = re.compile(r"(?:^|\s)(?:длительность|duration)(?:\s|:|$)")

_DATE_REFERENCE_RE = re.compile(
    r"(?<!\S)(?:вчера|позавчера|yesterday"
    r"|понедельник|понедельника|вторник|вторника|среда|среду|среды|четверг|четверга"
    r"|пятница|пятницу|пятницы|суббота|субботу|субботы|воскресенье|воскресенья"
    r"|monday|tuesday|wednesday|thursday|friday|saturday|sunday)(?!\S)"
)


def _kind_of(label: str) -> str:
    return LABEL_KINDS[" ".join(label.lower().split())]


def strip_command_prefix(text: str) -> str:
    """
    Срезает вступление ('занеси в clockify', 'add to clockify:').
    Если в тексте есть любая метка поля, разбор начинается с первой из них.
    """
    source = (text or "").strip()
    first_label = _LABEL_RE.search(source)
    if first_label and first_label.start() > 0:
        return source[first_label.start() :].strip()
    for rx in (_TRIGGER_RE, _ADD_TO_RE):
        stripped, count = rx.subn("", source, count=1)
        if count:
            return stripped.strip()
    if "clockify" in source.lower() and ":" in source:
        return source[source.index(":") + 1 :].strip()
    return source


def prepare_command_text(text: str) -> str:
    return squash_dictated_letters(preprocess_transcribed(strip_command_prefix(repair_mojibake(text))))


def detect_labeled_part(part: str) -> tuple[str, str] | None:
    m = _LABELED_PART_RE.match(part)
    if not m:
        return None
    value = m.group(2).strip(_VALUE_TRIM)
    if not value:
        return None
    return _kind_of(m.group(1)), value


def strip_field_label(value: str, kind: str) -> str:
    """'проект Apollo' -> 'Apollo' для kind='project'; без метки значение не меняется."""
    stripped = _FIELD_LABEL_RES[kind].sub("", value, count=1).strip(_VALUE_TRIM)
    return stripped or value


def segment_by_slash(source: str, config: ResolverConfig, now: datetime | None = None) -> CommandCandidate | None:
    parts = [p.strip() for p in source.split("/") if p.strip()]
    if len(parts) < 4:
        return None

    candidate = CommandCandidate()
    unlabeled: list[str] = []
    for part in parts:
        detected = detect_labeled_part(part)
        if detected is None:
            unlabeled.append(part)
            continue
        kind, value = detected
        field_name = FIELD_BY_KIND[kind]
        if not getattr(candidate, field_name):
            setattr(candidate, field_name, value)

    remaining: list[str] = []
    for part in unlabeled:
        start_value = strip_field_label(part, "start")
        if not candidate.start_raw and is_time_expression(start_value, config, now):
            candidate.start_raw = start_value
            continue
        duration_value = strip_field_label(part, "duration")
        if not candidate.duration_raw and is_duration_expression(duration_value):
            candidate.duration_raw = duration_value
            continue
        remaining.append(part)

    for kind in ("project", "task"):
        field_name = FIELD_BY_KIND[kind]
        if not getattr(candidate, field_name) and remaining:
            setattr(candidate, field_name, strip_field_label(remaining.pop(0), kind))

    return candidate


def segment_by_labels(source: str) -> CommandCandidate | None:
    labels = list(_LABEL_RE.finditer(source))
    if not labels:
        return None

    candidate = CommandCandidate()
    for idx, cur in enumerate(labels):
        end = labels[idx + 1].start() if idx + 1 < len(labels) else len(source)
        value = source[cur.end() : end].strip(_VALUE_TRIM)
        if not value:
            continue
        kind = _kind_of(cur.group(1))
        field_name = FIELD_BY_KIND[kind]
        if not getattr(candidate, field_name):
            setattr(candidate, field_name, strip_field_label(value, kind))
    return candidate


def segment(text: str, config: ResolverConfig, now: datetime | None = None) -> CommandCandidate:
    source = prepare_command_text(text)
    if not source:
        raise FormatError()

    by_slash = segment_by_slash(source, config, now)
    if by_slash is not None and by_slash.is_complete():
        logger.debug("segment: slash strategy source={!r}", source)
        return by_slash

    by_labels = segment_by_labels(source)
    if by_labels is not None and by_labels.is_complete():
        logger.debug("segment: label strategy source={!r}", source)
        return by_labels

    missing = (by_labels or by_slash or CommandCandidate()).missing()
    logger.debug("segment: no complete candidate source={!r} missing={}", source, missing)
    raise FormatError()


def looks_like_tracking_command(text: str) -> bool:
    source = (text or "").strip().lower()
    if not source:
        return False
    if _SUPPORTED_PREFIX_RE.search(source):
        return True
    if "/" in source:
        return True
    has_project = bool(_HAS_PROJECT_RE.search(source))
    has_task = bool(_HAS_TASK_RE.search(source))
    has_start = bool(_HAS_START_RE.search(source))
    has_duration = bool(_HAS_DURATION_RE.search(source))
    return has_project and has_task and (has_start or has_duration)


def has_explicit_date_reference(text: str) -> bool:
    source = normalize_for_compare(text)
    if not source:
        return False
    return bool(_DATE_REFERENCE_RE.search(source))
