from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from clockbot.core.types import RankedCandidate


FUTURE_WEEKDAY_ERROR_MESSAGE = "Извини, я могу заносить записи только за прошедшую часть текущей недели."


class ClockbotError(ValueError):
    kind = "error"


class FormatError(ClockbotError):
    kind = "format"

    def __init__(
        self,
        message: str = "Format: Add to Clockify: <Project> / <Task> / <Start time> / <Duration>",
    ) -> None:
        super().__init__(message)


class TimeParseError(ClockbotError):
    kind = "time"

    def __init__(self, message: str = "Start time not recognized. Example: 10:30 or today 10:30") -> None:
        super().__init__(message)


class FutureWeekdayError(TimeParseError):
    kind = "future_weekday"

    def __init__(self, message: str = FUTURE_WEEKDAY_ERROR_MESSAGE) -> None:
        super().__init__(message)


class DurationParseError(ClockbotError):
    kind = "duration"

    def __init__(self, message: str = "Duration not recognized. Example: 1h 30m or 45m") -> None:
        super().__init__(message)


class NoMatchError(ClockbotError):
    kind = "no_match"

    def __init__(self, query: str, top_score: float = 0.0) -> None:
        super().__init__(f"Project not found: {query!r} (best score {top_score:.3f})")
        self.query = query
        self.top_score = top_score


class AmbiguousMatchError(ClockbotError):
    kind = "ambiguous"

    def __init__(self, query: str, candidates: list[RankedCandidate]) -> None:
        names = ", ".join(c.display_name for c in candidates)
        super().__init__(f"Several projects match {query!r}: {names}")
        self.query = query
        self.candidates = list(candidates)


class SelectionExpiredError(ClockbotError):
    kind = "selection_expired"

    def __init__(self, selection_id: str) -> None:
        super().__init__(f"Selection expired: {selection_id}")
        self.selection_id = selection_id


class SelectionOwnershipError(ClockbotError):
    kind = "selection_ownership"

    def __init__(self, selection_id: str, owner_id: str) -> None:
        super().__init__(f"Selection {selection_id} does not belong to {owner_id}")
        self.selection_id = selection_id
        self.owner_id = owner_id


class SelectionNotFoundError(ClockbotError):
    kind = "selection_not_found"

    def __init__(self, selection_id: str, index: int) -> None:
        super().__init__(f"Selection {selection_id} has no candidate #{index}")
        self.selection_id = selection_id
        self.index = index
