from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Literal


ParserName = Literal["rules", "ai"]

MAX_PENDING_CANDIDATES = 3


def _parse_iso(value: str) -> datetime:
    v = str(value).strip()
    if v.endswith("Z"):
        v = v[:-1] + "+00:00"
    dt = datetime.fromisoformat(v)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(slots=True)
class CommandCandidate:
    project_query: str = ""
    task_query: str = ""
    start_raw: str = ""
    duration_raw: str = ""

    def is_complete(self) -> bool:
        return all(
            value.strip()
            for value in (self.project_query, self.task_query, self.start_raw, self.duration_raw)
        )

    def missing(self) -> list[str]:
        out = []
        for name in ("project_query", "task_query", "start_raw", "duration_raw"):
            if not getattr(self, name).strip():
                out.append(name)
        return out


@dataclass(frozen=True, slots=True)
class ParsedCommand:
    project_query: str
    task_query: str
    duration_minutes: int
    start: datetime
    end: datetime
    source: ParserName = "rules"

    def __post_init__(self) -> None:
        if not isinstance(self.duration_minutes, int) or self.duration_minutes <= 0:
            raise ValueError("duration_minutes must be a positive integer")
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("start/end must be timezone-aware")
        if self.end - self.start != timedelta(minutes=self.duration_minutes):
            raise ValueError("end must equal start + duration_minutes")
        if not self.project_query.strip() or not self.task_query.strip():
            raise ValueError("project_query and task_query are required")

    @classmethod
    def build(
        cls,
        *,
        project_query: str,
        task_query: str,
        duration_minutes: int,
        start: datetime,
        source: ParserName = "rules",
    ) -> "ParsedCommand":
        return cls(
            project_query=project_query.strip(),
            task_query=task_query.strip(),
            duration_minutes=duration_minutes,
            start=start,
            end=start + timedelta(minutes=duration_minutes),
            source=source,
        )

    def with_project_query(self, project_query: str) -> "ParsedCommand":
        return ParsedCommand(
            project_query=project_query,
            task_query=self.task_query,
            duration_minutes=self.duration_minutes,
            start=self.start,
            end=self.end,
            source=self.source,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "project_query": self.project_query,
            "task_query": self.task_query,
            "duration_minutes": self.duration_minutes,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ParsedCommand":
        if not isinstance(payload, dict):
            raise ValueError("command payload must be object")
        return cls(
            project_query=str(payload.get("project_query") or ""),
            task_query=str(payload.get("task_query") or ""),
            duration_minutes=int(payload.get("duration_minutes") or 0),
            start=_parse_iso(payload["start"]),
            end=_parse_iso(payload["end"]),
            source="ai" if payload.get("source") == "ai" else "rules",
        )


@dataclass(frozen=True, slots=True)
class CatalogItem:
    id: str
    display_name: str


@dataclass(frozen=True, slots=True)
class RankedCandidate:
    id: str
    display_name: str
    score: float

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "display_name": self.display_name, "score": self.score}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "RankedCandidate":
        if not isinstance(payload, dict):
            raise ValueError("candidate must be object")
        out = cls(
            id=str(payload.get("id") or "").strip(),
            display_name=str(payload.get("display_name") or "").strip(),
            score=float(payload.get("score", 0.0)),
        )
        if not out.id:
            raise ValueError("candidate.id is required")
        return out


def new_selection_id() -> str:
    # 6 random bytes -> 8 url-safe chars, leaves room in a 64-byte callback payload
    return secrets.token_urlsafe(6)


@dataclass(frozen=True, slots=True)
class PendingSelection:
    id: str
    owner_id: str
    candidates: tuple[RankedCandidate, ...]
    command: ParsedCommand
    created_at: datetime
    expires_at: datetime

    def __post_init__(self) -> None:
        if not self.id or not self.owner_id:
            raise ValueError("id and owner_id are required")
        if not self.candidates or len(self.candidates) > MAX_PENDING_CANDIDATES:
            raise ValueError(f"a selection holds 1..{MAX_PENDING_CANDIDATES} candidates")

    def is_expired(self, now: datetime | None = None) -> bool:
        current = _as_utc(now or datetime.now(timezone.utc))
        return current > _as_utc(self.expires_at)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "candidates": [c.to_dict() for c in self.candidates],
            "command": self.command.to_dict(),
            "created_at": _as_utc(self.created_at).isoformat(),
            "expires_at": _as_utc(self.expires_at).isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "PendingSelection":
        if not isinstance(payload, dict):
            raise ValueError("pending payload must be object")
        raw_candidates = payload.get("candidates")
        candidates = []
        if isinstance(raw_candidates, list):
            for raw in raw_candidates:
                candidates.append(RankedCandidate.from_dict(raw))
        return cls(
            id=str(payload.get("id") or "").strip(),
            owner_id=str(payload.get("owner_id") or "").strip(),
            candidates=tuple(candidates),
            command=ParsedCommand.from_dict(payload.get("command") or {}),
            created_at=_parse_iso(payload["created_at"]),
            expires_at=_parse_iso(payload["expires_at"]),
        )

    @classmethod
    def new(
        cls,
        *,
        owner_id: str | int,
        candidates: list[RankedCandidate],
        command: ParsedCommand,
        ttl_sec: int,
        now: datetime | None = None,
    ) -> "PendingSelection":
        created = _as_utc(now or datetime.now(timezone.utc))
        return cls(
            id=new_selection_id(),
            owner_id=str(owner_id).strip(),
            candidates=tuple(candidates[:MAX_PENDING_CANDIDATES]),
            command=command,
            created_at=created,
            expires_at=created + timedelta(seconds=int(ttl_sec)),
        )


@dataclass(frozen=True, slots=True)
class ParseResult:
    ok: bool
    command: ParsedCommand | None = None
    error_kind: str | None = None
    message: str | None = None
    parser: str | None = None

    @classmethod
    def success(cls, command: ParsedCommand, parser: str) -> "ParseResult":
        return cls(ok=True, command=command, parser=parser)

    @classmethod
    def failure(cls, error_kind: str, message: str, parser: str | None = None) -> "ParseResult":
        return cls(ok=False, error_kind=error_kind, message=message, parser=parser)


@dataclass(slots=True)
class ProjectResolution:
    """Outcome of matching a parsed command against the project catalog."""

    status: Literal["resolved", "pending"]
    command: ParsedCommand
    project: RankedCandidate | None = None
    selection: PendingSelection | None = None
    ranked: list[RankedCandidate] = field(default_factory=list)
