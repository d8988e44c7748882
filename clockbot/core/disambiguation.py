from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from loguru import logger

from clockbot.config import ResolverConfig
from clockbot.core.errors import (
    AmbiguousMatchError,
    NoMatchError,
    SelectionExpiredError,
    SelectionNotFoundError,
    SelectionOwnershipError,
)
from clockbot.core.fuzzy import MatchConfidence, classify, rank
from clockbot.core.types import (
    MAX_PENDING_CANDIDATES,
    CatalogItem,
    ParsedCommand,
    PendingSelection,
    ProjectResolution,
    RankedCandidate,
)
from clockbot.pending.store import PendingStore


def _now_utc(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def _owner_key(owner_id: str | int) -> str:
    return str(owner_id).strip()


class Disambiguator:
    """
    Выбор проекта по каталогу:
    - уверенное совпадение -> сразу проект
    - слабое/неразделённое -> pending с top-3 (или AmbiguousMatchError без интерактива)
    - выбор по кнопке забирает pending ровно один раз
    """

    def __init__(self, store: PendingStore, config: ResolverConfig) -> None:
        self.store = store
        self.config = config

    def resolve_project(
        self,
        owner_id: str | int,
        catalog: Iterable[CatalogItem],
        command: ParsedCommand,
        now: Optional[datetime] = None,
    ) -> ProjectResolution:
        ranked = rank(catalog, command.project_query)
        top = ranked[:MAX_PENDING_CANDIDATES]
        logger.debug(
            "disambiguation: query={!r} top={}",
            command.project_query,
            [(c.display_name, round(c.score, 3)) for c in top],
        )

        confidence = classify(ranked, self.config)
        if confidence is MatchConfidence.NO_MATCH:
            raise NoMatchError(command.project_query, ranked[0].score if ranked else 0.0)

        if confidence is MatchConfidence.LOW and len(ranked) > 1:
            if not self.config.interactive_selection:
                raise AmbiguousMatchError(command.project_query, top)
            selection = self.create_pending_selection(owner_id, top, command, now)
            return ProjectResolution(status="pending", command=command, selection=selection, ranked=ranked)

        return ProjectResolution(status="resolved", command=command, project=ranked[0], ranked=ranked)

    def create_pending_selection(
        self,
        owner_id: str | int,
        candidates: list[RankedCandidate],
        command: ParsedCommand,
        now: Optional[datetime] = None,
    ) -> PendingSelection:
        selection = PendingSelection.new(
            owner_id=owner_id,
            candidates=candidates,
            command=command,
            ttl_sec=self.config.pending_ttl_sec,
            now=_now_utc(now),
        )
        self.store.put(selection)
        logger.info(
            "pending created id={} owner={} candidates={}",
            selection.id,
            selection.owner_id,
            [c.display_name for c in selection.candidates],
        )
        return selection

    def get_pending_selection(self, selection_id: str, now: Optional[datetime] = None) -> PendingSelection | None:
        return self.store.get(selection_id, _now_utc(now))

    def _checked(self, selection_id: str, owner_id: str | int, now: datetime) -> PendingSelection:
        selection = self.store.get(selection_id, now)
        if selection is None:
            raise SelectionExpiredError(selection_id)
        owner = _owner_key(owner_id)
        if selection.owner_id != owner:
            logger.info("pending id={} rejected foreign owner={}", selection_id, owner)
            raise SelectionOwnershipError(selection_id, owner)
        return selection

    def resolve_pending_selection(
        self,
        selection_id: str,
        owner_id: str | int,
        index: int,
        now: Optional[datetime] = None,
    ) -> tuple[RankedCandidate, ParsedCommand]:
        current = _now_utc(now)
        selection = self._checked(selection_id, owner_id, current)
        if not isinstance(index, int) or not 0 <= index < len(selection.candidates):
            raise SelectionNotFoundError(selection_id, index)

        taken = self.store.take(selection_id, current)
        if taken is None:
            # resolved or canceled concurrently
            raise SelectionExpiredError(selection_id)
        chosen = taken.candidates[index]
        logger.info("pending resolved id={} project={!r}", selection_id, chosen.display_name)
        return chosen, taken.command

    def cancel_pending_selection(
        self,
        selection_id: str,
        owner_id: str | int,
        now: Optional[datetime] = None,
    ) -> PendingSelection:
        current = _now_utc(now)
        self._checked(selection_id, owner_id, current)
        taken = self.store.take(selection_id, current)
        if taken is None:
            raise SelectionExpiredError(selection_id)
        logger.info("pending canceled id={}", selection_id)
        return taken

    def prune(self, now: Optional[datetime] = None) -> int:
        removed = self.store.prune(_now_utc(now))
        if removed:
            logger.info("pending pruned count={}", removed)
        return removed
