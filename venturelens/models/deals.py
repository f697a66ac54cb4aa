"""Structured funding-deal records inferred from free text."""

from __future__ import annotations

from datetime import date, datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Entity phrases that are artefacts of boilerplate phrasing, never startup names.
STOPWORD_NAMES = frozenset({"the", "a", "an", "this", "that", "it"})


class DealRecord(BaseModel):
    """A funding event: which startup raised how much, according to which source.

    ``funding_amount`` is always whole US dollars regardless of the unit
    written in the source text.
    """

    model_config = ConfigDict(frozen=True)

    startup_name: str = Field(min_length=1)
    funding_amount: float = Field(ge=0.0, description="Normalized amount in USD.")
    source_id: str | None = Field(default=None, description="Provenance data source id.")
    funding_date: date = Field(default_factory=lambda: datetime.now(timezone.utc).date())
    funding_round: str | None = None
    raw_match: str = Field(default="", description="Substring that produced this record.")
    extracted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    auto_extracted: bool = True

    @field_validator("startup_name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        name = value.strip()
        if not name:
            raise ValueError("startup_name must not be blank")
        if name.lower() in STOPWORD_NAMES:
            raise ValueError(f"{name!r} is not a startup name")
        return name

    @property
    def dedup_key(self) -> tuple[str, float]:
        """Natural key used for within-run and store-level deduplication."""
        return (self.startup_name.lower(), self.funding_amount)
