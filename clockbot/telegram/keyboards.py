from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from clockbot.core.texts import button_ru
from clockbot.core.types import MAX_PENDING_CANDIDATES, PendingSelection


PROJECT_PREFIX = "PROJECT"
CANCEL_PREFIX = "CANCEL"
CALLBACK_DATA_LIMIT = 64


@dataclass(frozen=True, slots=True)
class CallbackChoice:
    action: Literal["project", "cancel"]
    selection_id: str
    index: Optional[int] = None


def project_callback(selection_id: str, index: int) -> str:
    return f"{PROJECT_PREFIX}|{selection_id}|{index}"


def cancel_callback(selection_id: str) -> str:
    return f"{CANCEL_PREFIX}|{selection_id}"


def build_choice_keyboard(selection: PendingSelection) -> InlineKeyboardMarkup:
    rows = [
        [InlineKeyboardButton(text=c.display_name, callback_data=project_callback(selection.id, idx))]
        for idx, c in enumerate(selection.candidates[:MAX_PENDING_CANDIDATES])
    ]
    rows.append([InlineKeyboardButton(text=button_ru("BTN_CANCEL"), callback_data=cancel_callback(selection.id))])

    for row in rows:
        for button in row:
            if len((button.callback_data or "").encode("utf-8")) > CALLBACK_DATA_LIMIT:
                raise ValueError(f"callback_data exceeds {CALLBACK_DATA_LIMIT} bytes: {button.callback_data!r}")
    return InlineKeyboardMarkup(inline_keyboard=rows)


def parse_callback_data(data: str | None) -> CallbackChoice | None:
    parts = str(data or "").split("|")
    if parts[0] == CANCEL_PREFIX and len(parts) == 2 and parts[1]:
        return CallbackChoice(action="cancel", selection_id=parts[1])
    if parts[0] == PROJECT_PREFIX and len(parts) == 3 and parts[1] and parts[2].isdigit():
        index = int(parts[2])
        if 0 <= index < MAX_PENDING_CANDIDATES:
            return CallbackChoice(action="project", selection_id=parts[1], index=index)
    return None
