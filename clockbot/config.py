from __future__ import annotations

from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class ResolverConfig:
    """Everything the parser and the disambiguation flow need to know.

    All fields are required; the struct validates itself on construction so a
    broken environment fails at startup instead of on the first message.
    """

    reference_timezone: str
    storage_timezone: str
    interactive_selection: bool
    pending_ttl_sec: int
    low_confidence_threshold: float
    min_score_gap: float
    no_match_threshold: float

    def __post_init__(self) -> None:
        for name in ("reference_timezone", "storage_timezone"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{name} is required")
            try:
                ZoneInfo(value)
            except (ZoneInfoNotFoundError, ValueError) as exc:
                raise ValueError(f"{name} is not a known timezone: {value}") from exc
        if not isinstance(self.interactive_selection, bool):
            raise ValueError("interactive_selection must be bool")
        if int(self.pending_ttl_sec) <= 0:
            raise ValueError("pending_ttl_sec must be positive")
        for name in ("low_confidence_threshold", "min_score_gap", "no_match_threshold"):
            value = float(getattr(self, name))
            if value < 0 or value > 1:
                raise ValueError(f"{name} must be in [0..1]")
        if self.no_match_threshold > self.low_confidence_threshold:
            raise ValueError("no_match_threshold must not exceed low_confidence_threshold")

    @property
    def reference_tz(self) -> ZoneInfo:
        return ZoneInfo(self.reference_timezone)

    @property
    def storage_tz(self) -> ZoneInfo:
        return ZoneInfo(self.storage_timezone)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    reference_timezone: str = "Europe/Moscow"
    storage_timezone: str = "UTC"
    interactive_selection: bool = True
    pending_ttl_sec: int = 900
    low_confidence_threshold: float = 0.56
    min_score_gap: float = 0.08
    no_match_threshold: float = 0.35
    pending_sqlite_path: str = "data/pending.db"
    log_path: str = "logs/clockbot.log"
    log_level: str = "INFO"
    ai_parser_url: str = "https://api.openai.com/v1"
    ai_parser_api_key: str = ""
    ai_parser_model: str = "gpt-4o-mini"
    ai_parser_timeout_seconds: float = 45.0

    def resolver_config(self) -> ResolverConfig:
        return ResolverConfig(
            reference_timezone=self.reference_timezone,
            storage_timezone=self.storage_timezone,
            interactive_selection=self.interactive_selection,
            pending_ttl_sec=self.pending_ttl_sec,
            low_confidence_threshold=self.low_confidence_threshold,
            min_score_gap=self.min_score_gap,
            no_match_threshold=self.no_match_threshold,
        )


settings = Settings()
