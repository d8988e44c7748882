from __future__ import annotations

from datetime import datetime, timezone

from clockbot.core.types import ParsedCommand, PendingSelection, RankedCandidate
from clockbot.telegram.keyboards import (
    CALLBACK_DATA_LIMIT,
    CallbackChoice,
    build_choice_keyboard,
    parse_callback_data,
)


def _selection() -> PendingSelection:
    command = ParsedCommand.build(
        project_query="apolo",
        task_query="отчёт",
        duration_minutes=45,
        start=datetime(2026, 3, 12, 7, 30, tzinfo=timezone.utc),
    )
    return PendingSelection.new(
        owner_id=42,
        candidates=[
            RankedCandidate(id="p17", display_name="Apollo 17", score=0.75),
            RankedCandidate(id="p18", display_name="Apollo 18", score=0.75),
            RankedCandidate(id="pb", display_name="Очень длинное название проекта " * 4, score=0.4),
        ],
        command=command,
        ttl_sec=900,
        now=datetime(2026, 3, 12, 15, 0, tzinfo=timezone.utc),
    )


def test_build_choice_keyboard() -> None:
    selection = _selection()
    markup = build_choice_keyboard(selection)
    rows = markup.inline_keyboard

    assert len(rows) == 4
    assert rows[0][0].text == "Apollo 17"
    assert rows[0][0].callback_data == f"PROJECT|{selection.id}|0"
    assert rows[2][0].callback_data == f"PROJECT|{selection.id}|2"
    assert rows[3][0].text == "Отмена"
    assert rows[3][0].callback_data == f"CANCEL|{selection.id}"
    for row in rows:
        assert len(row[0].callback_data.encode("utf-8")) <= CALLBACK_DATA_LIMIT


def test_parse_callback_data_round_trip() -> None:
    selection = _selection()
    for row in build_choice_keyboard(selection).inline_keyboard[:3]:
        parsed = parse_callback_data(row[0].callback_data)
        assert parsed is not None
        assert parsed.action == "project"
        assert parsed.selection_id == selection.id
    assert parse_callback_data(f"CANCEL|{selection.id}") == CallbackChoice(action="cancel", selection_id=selection.id)


def test_parse_callback_data_rejects_garbage() -> None:
    for data in ("", None, "PROJECT|abc|3", "PROJECT|abc|-1", "PROJECT|abc|x", "PROJECT||0", "CANCEL|", "TASK|abc|0"):
        assert parse_callback_data(data) is None
