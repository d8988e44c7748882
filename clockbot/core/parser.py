from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from typing import Any, Optional, Protocol, Sequence

from loguru import logger

from clockbot.config import ResolverConfig
from clockbot.core.augment import enrich_project_query_numerals
from clockbot.core.errors import ClockbotError, FormatError
from clockbot.core.normalize import repair_mojibake
from clockbot.core.segmenter import has_explicit_date_reference, segment
from clockbot.core.temporal import parse_duration_minutes, resolve_start
from clockbot.core.types import ParsedCommand, ParseResult
from clockbot.llm.ai_parser import AiCommandParser


GENERIC_LABELS = frozenset({"project", "проект", "task", "задача", "работа"})

_HHMM_RE = re.compile(r"^(\d{2}):(\d{2})$")
_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def _now_utc(now: Optional[datetime]) -> datetime:
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    return current


def parse_command(text: str, config: ResolverConfig, now: Optional[datetime] = None) -> ParsedCommand:
    """Rule-based parse; raises the matching ClockbotError subclass."""
    source = repair_mojibake(text)
    candidate = segment(source, config, now)
    duration = parse_duration_minutes(candidate.duration_raw)
    start = resolve_start(candidate.start_raw, config, now)
    if not candidate.project_query.strip() or not candidate.task_query.strip():
        raise FormatError("Project and task are required.")

    return ParsedCommand.build(
        project_query=enrich_project_query_numerals(source, candidate.project_query),
        task_query=candidate.task_query,
        duration_minutes=duration,
        start=start.astimezone(config.storage_tz),
        source="rules",
    )


def parse(text: str, config: ResolverConfig, now: Optional[datetime] = None) -> ParseResult:
    try:
        command = parse_command(text, config, now)
    except ClockbotError as exc:
        logger.info("parser=rules failed kind={} error={}", exc.kind, exc)
        return ParseResult.failure(exc.kind, str(exc), parser="rules")
    logger.info(
        "parser=rules project={!r} task={!r} start={} minutes={}",
        command.project_query,
        command.task_query,
        command.start.isoformat(),
        command.duration_minutes,
    )
    return ParseResult.success(command, parser="rules")


def _clean(value: Any) -> str:
    return str(value if value is not None else "").strip()


def validate_fallback_payload(
    payload: Any,
    config: ResolverConfig,
    now: Optional[datetime] = None,
) -> ParsedCommand:
    """
    Проверка ответа модели:
    - projectQuery / taskQuery непустые и не просто 'проект'/'task'
    - startTimeHHmm строго HH:MM, startDate YYYY-MM-DD (по умолчанию сегодня)
    - durationMinutes целое > 0
    """
    if not isinstance(payload, dict):
        raise FormatError()

    project_query = _clean(payload.get("projectQuery"))
    task_query = _clean(payload.get("taskQuery"))
    if not project_query or not task_query:
        raise FormatError()
    if project_query.lower() in GENERIC_LABELS or task_query.lower() in GENERIC_LABELS:
        raise FormatError()

    hhmm = _HHMM_RE.match(_clean(payload.get("startTimeHHmm")))
    if not hhmm:
        raise FormatError()
    hour, minute = int(hhmm.group(1)), int(hhmm.group(2))
    if hour > 23 or minute > 59:
        raise FormatError()

    tz = config.reference_tz
    raw_date = _clean(payload.get("startDate")) or _now_utc(now).astimezone(tz).date().isoformat()
    ymd = _ISO_DATE_RE.match(raw_date)
    if not ymd:
        raise FormatError()
    try:
        day = date(int(ymd.group(1)), int(ymd.group(2)), int(ymd.group(3)))
    except ValueError as exc:
        raise FormatError() from exc

    duration = payload.get("durationMinutes")
    if isinstance(duration, str) and duration.strip().isdigit():
        duration = int(duration.strip())
    if isinstance(duration, bool) or not isinstance(duration, (int, float)):
        raise FormatError()
    if not float(duration).is_integer() or int(duration) <= 0:
        raise FormatError()

    start = datetime.combine(day, time(hour, minute), tzinfo=tz)
    return ParsedCommand.build(
        project_query=project_query,
        task_query=task_query,
        duration_minutes=int(duration),
        start=start.astimezone(config.storage_tz),
        source="ai",
    )


class ParseStrategy(Protocol):
    name: str

    def applies(self, text: str) -> bool: ...

    async def run(self, text: str, config: ResolverConfig, now: Optional[datetime]) -> ParseResult: ...


class RuleStrategy:
    name = "rules"

    def applies(self, text: str) -> bool:
        return True

    async def run(self, text: str, config: ResolverConfig, now: Optional[datetime]) -> ParseResult:
        return parse(text, config, now)


class AiFallbackStrategy:
    name = "ai"

    def __init__(self, client: AiCommandParser) -> None:
        self.client = client

    def applies(self, text: str) -> bool:
        # relative dates stay with the rules
        return self.client.enabled and not has_explicit_date_reference(text)

    async def run(self, text: str, config: ResolverConfig, now: Optional[datetime]) -> ParseResult:
        today = _now_utc(now).astimezone(config.reference_tz).date()
        payload = await self.client.extract(text, today, config.reference_timezone)
        if payload is None:
            return ParseResult.failure(FormatError.kind, str(FormatError()), parser=self.name)
        try:
            command = validate_fallback_payload(payload, config, now)
        except ClockbotError as exc:
            logger.info("parser=ai rejected payload={} error={}", payload, exc)
            return ParseResult.failure(exc.kind, str(exc), parser=self.name)

        enriched = enrich_project_query_numerals(repair_mojibake(text), command.project_query)
        if enriched != command.project_query:
            command = command.with_project_query(enriched)
        logger.info("parser=ai project={!r} task={!r}", command.project_query, command.task_query)
        return ParseResult.success(command, parser=self.name)


class CommandParser:
    """Runs strategies in order; first success wins, else the first failure is reported."""

    def __init__(self, strategies: Sequence[ParseStrategy], config: ResolverConfig) -> None:
        if not strategies:
            raise ValueError("at least one strategy is required")
        self.strategies = list(strategies)
        self.config = config

    async def parse(self, text: str, now: Optional[datetime] = None) -> ParseResult:
        first_failure: ParseResult | None = None
        for strategy in self.strategies:
            if not strategy.applies(text):
                logger.debug("parser={} skipped", strategy.name)
                continue
            result = await strategy.run(text, self.config, now)
            if result.ok:
                return result
            if first_failure is None:
                first_failure = result
        return first_failure or ParseResult.failure(FormatError.kind, str(FormatError()))
