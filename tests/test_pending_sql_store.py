from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from clockbot.config import ResolverConfig
from clockbot.core.disambiguation import Disambiguator
from clockbot.core.errors import SelectionExpiredError
from clockbot.core.types import CatalogItem, ParsedCommand, PendingSelection, RankedCandidate
from clockbot.db.repositories.pending_repo import SqlPendingStore
from clockbot.db.session import build_engine, build_session_factory, session_scope
from clockbot.db.models import PendingSelectionRow


NOW = datetime(2026, 3, 12, 15, 0, tzinfo=timezone.utc)


def _store(tmp_path: Path) -> SqlPendingStore:
    engine = build_engine(tmp_path / "db" / "pending.db")
    return SqlPendingStore(build_session_factory(engine))


def _selection(ttl_sec: int = 900, now: datetime = NOW) -> PendingSelection:
    command = ParsedCommand.build(
        project_query="apolo",
        task_query="отчёт",
        duration_minutes=90,
        start=datetime(2026, 3, 12, 7, 30, tzinfo=timezone.utc),
    )
    return PendingSelection.new(
        owner_id=42,
        candidates=[
            RankedCandidate(id="p17", display_name="Apollo 17", score=0.75),
            RankedCandidate(id="p18", display_name="Apollo 18", score=0.75),
        ],
        command=command,
        ttl_sec=ttl_sec,
        now=now,
    )


def test_put_get_take_round_trip(tmp_path: Path) -> None:
    store = _store(tmp_path)
    selection = _selection()
    store.put(selection)

    loaded = store.get(selection.id, NOW)
    assert loaded == selection
    assert loaded.command.task_query == "отчёт"

    taken = store.take(selection.id, NOW)
    assert taken == selection
    assert store.take(selection.id, NOW) is None
    assert store.get(selection.id, NOW) is None


def test_expired_rows_are_hidden_and_pruned(tmp_path: Path) -> None:
    store = _store(tmp_path)
    old = _selection(ttl_sec=60)
    kept = _selection(ttl_sec=3600)
    store.put(old)
    store.put(kept)

    later = NOW + timedelta(minutes=5)
    assert store.get(old.id, later) is None
    assert store.take(kept.id, NOW + timedelta(hours=2)) is None

    again = _selection(ttl_sec=60)
    store.put(again)
    assert store.prune(later) == 1
    assert store.prune(later) == 0


def test_rows_are_shared_between_store_instances(tmp_path: Path) -> None:
    first = _store(tmp_path)
    second = _store(tmp_path)
    selection = _selection()
    first.put(selection)

    assert second.take(selection.id, NOW) == selection
    assert first.take(selection.id, NOW) is None


def test_disambiguator_over_sql_store(tmp_path: Path) -> None:
    config = ResolverConfig(
        reference_timezone="Europe/Moscow",
        storage_timezone="UTC",
        interactive_selection=True,
        pending_ttl_sec=900,
        low_confidence_threshold=0.56,
        min_score_gap=0.08,
        no_match_threshold=0.35,
    )
    disambiguator = Disambiguator(_store(tmp_path), config)
    catalog = [CatalogItem(id="p17", display_name="Apollo 17"), CatalogItem(id="p18", display_name="Apollo 18")]
    command = _selection().command

    resolution = disambiguator.resolve_project("42", catalog, command, NOW)
    assert resolution.status == "pending"
    chosen, restored = disambiguator.resolve_pending_selection(resolution.selection.id, "42", 1, NOW)
    assert chosen.id == "p18"
    assert restored == command
    with pytest.raises(SelectionExpiredError):
        disambiguator.resolve_pending_selection(resolution.selection.id, "42", 1, NOW)


def test_session_scope_rolls_back(tmp_path: Path) -> None:
    factory = build_session_factory(build_engine(tmp_path / "pending.db"))
    with pytest.raises(RuntimeError):
        with session_scope(factory) as session:
            session.add(
                PendingSelectionRow(
                    id="x",
                    owner_id="1",
                    payload_json="{}",
                    created_at=NOW.replace(tzinfo=None),
                    expires_at=NOW.replace(tzinfo=None),
                )
            )
            session.flush()
            raise RuntimeError("boom")
    with session_scope(factory) as session:
        assert session.get(PendingSelectionRow, "x") is None
