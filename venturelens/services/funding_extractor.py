"""Pattern-based extraction of funding deals from free text.

Scans prose such as "Acme Robotics raised $5 million in Series A" and emits
:class:`~venturelens.models.deals.DealRecord` objects with the amount
normalized to US dollars.

The phrasing rules live in :data:`DEAL_PATTERNS`, a table of compiled regexes
plus the capture-group roles they use.  Adding a new phrasing means adding a
row, not touching the scan loop.  Unit conversion is the pure function
:func:`normalize_amount`; the crore and lakh rates are an approximate FX
assumption supplied by configuration.

The extractor never raises.  A match that fails to parse or validate is
logged at debug level and skipped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import structlog
from pydantic import ValidationError

from venturelens.models.deals import STOPWORD_NAMES, DealRecord

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_CRORE_TO_USD = 12_000_000.0
DEFAULT_LAKH_TO_USD = 12_000.0

_BILLION_UNITS = frozenset({"b", "bn", "billion"})
_CRORE_UNITS = frozenset({"cr", "crore", "crores"})
_LAKH_UNITS = frozenset({"l", "lac", "lakh", "lakhs"})

_ENTITY = r"(\w+(?:\s+\w+){0,3})"
_CURRENCY = r"(?:\$|₹|(?:usd|inr|rs\.?)\s*)?"
_NUMBER = r"(\d[\d,]*(?:\.\d+)?)"
_ROUND = re.compile(
    r"\b(pre-seed|seed|series\s+[a-h]|bridge|angel|pre-series\s+[a-h])\b",
    re.IGNORECASE,
)
_ROUND_LOOKAHEAD_CHARS = 60


@dataclass(frozen=True)
class DealPattern:
    """One phrasing rule.

    ``entity_group`` and ``amount_group`` are the two candidate capture
    groups; which one actually holds the number is decided per match.
    """

    name: str
    regex: re.Pattern[str]
    entity_group: int
    amount_group: int
    unit_group: int


DEAL_PATTERNS: tuple[DealPattern, ...] = (
    # "Acme Robotics raised $5 million"
    DealPattern(
        name="entity_raised_amount",
        regex=re.compile(
            _ENTITY
            + r"\s+(?:raises?|raised|secures?|secured|gets?|got)\s+"
            + _CURRENCY
            + _NUMBER
            + r"\s*(million|mn|m|crores?|cr|billion|bn|b|lakhs?|lac|l)\b",
            re.IGNORECASE,
        ),
        entity_group=1,
        amount_group=2,
        unit_group=3,
    ),
    # "$5 million funding for Acme Robotics"
    DealPattern(
        name="amount_for_entity",
        regex=re.compile(
            _CURRENCY
            + _NUMBER
            + r"\s*(million|mn|m|crores?|cr|billion|bn|b)\s+"
            + r"(?:funding|investment|round)\s+(?:for|in|by|to)\s+"
            + _ENTITY,
            re.IGNORECASE,
        ),
        entity_group=3,
        amount_group=1,
        unit_group=2,
    ),
)


def normalize_amount(
    value: float,
    unit: str,
    *,
    crore_to_usd: float = DEFAULT_CRORE_TO_USD,
    lakh_to_usd: float = DEFAULT_LAKH_TO_USD,
) -> float:
    """Convert *value* expressed in *unit* into whole US dollars.

    ``b``/``bn``/``billion`` multiply by 1e9, crore and lakh use the given
    rates, and anything else (``m``/``mn``/``million``) is read as millions.

    >>> normalize_amount(2, "billion") / 1e6
    2000.0
    """
    unit = unit.strip().lower()
    if unit in _BILLION_UNITS:
        return value * 1_000_000_000
    if unit in _CRORE_UNITS:
        return value * crore_to_usd
    if unit in _LAKH_UNITS:
        return value * lakh_to_usd
    return value * 1_000_000


class FundingExtractor:
    """Finds funding announcements in text and emits normalized deal records.

    Parameters
    ----------
    crore_to_usd, lakh_to_usd:
        Conversion rates for Indian numbering units.
    max_records:
        Upper bound on records emitted by a single :meth:`extract` call.
    patterns:
        Phrasing rules, applied in order.
    """

    def __init__(
        self,
        crore_to_usd: float = DEFAULT_CRORE_TO_USD,
        lakh_to_usd: float = DEFAULT_LAKH_TO_USD,
        max_records: int = 50,
        patterns: tuple[DealPattern, ...] = DEAL_PATTERNS,
    ) -> None:
        self._crore_to_usd = crore_to_usd
        self._lakh_to_usd = lakh_to_usd
        self._max_records = max_records
        self._patterns = patterns

    def extract(self, text: str, source_id: str | None = None) -> list[DealRecord]:
        """Return de-duplicated deal records found in *text*.

        Parameters
        ----------
        text:
            Free text to scan.
        source_id:
            Provenance identifier stored on every record.

        Returns
        -------
        list[DealRecord]
            At most ``max_records`` records; no two share the same
            (lower-cased name, amount) pair.  First occurrence wins.
        """
        records: list[DealRecord] = []
        seen: set[tuple[str, float]] = set()

        for pattern in self._patterns:
            for match in pattern.regex.finditer(text):
                if len(records) >= self._max_records:
                    break
                record = self._build_record(pattern, match, text, source_id)
                if record is None or record.dedup_key in seen:
                    continue
                seen.add(record.dedup_key)
                records.append(record)

        if records:
            logger.info(
                "funding_records_extracted",
                source_id=source_id,
                count=len(records),
                capped=len(records) >= self._max_records,
            )
        return records

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build_record(
        self,
        pattern: DealPattern,
        match: re.Match[str],
        text: str,
        source_id: str | None,
    ) -> DealRecord | None:
        entity = match.group(pattern.entity_group) or ""
        amount_text = match.group(pattern.amount_group) or ""

        # The number is whichever candidate parses as one.
        value = _parse_number(amount_text)
        if value is None:
            value = _parse_number(entity)
            entity = amount_text
        if value is None:
            logger.debug("deal_match_unparseable", pattern=pattern.name, raw=match.group(0))
            return None

        name = entity.strip()
        if not name or name.lower() in STOPWORD_NAMES:
            logger.debug("deal_match_rejected", pattern=pattern.name, entity=name)
            return None

        amount = normalize_amount(
            value,
            match.group(pattern.unit_group),
            crore_to_usd=self._crore_to_usd,
            lakh_to_usd=self._lakh_to_usd,
        )

        try:
            return DealRecord(
                startup_name=name,
                funding_amount=amount,
                source_id=source_id,
                funding_round=_find_round(match, text),
                raw_match=match.group(0),
            )
        except ValidationError as exc:
            logger.debug("deal_match_invalid", pattern=pattern.name, error=str(exc))
            return None


def _parse_number(raw: str) -> float | None:
    try:
        return float(raw.replace(",", ""))
    except ValueError:
        return None


def _find_round(match: re.Match[str], text: str) -> str | None:
    """Return a round label such as ``Series A`` found inside or just after the match."""
    window = text[match.start() : match.end() + _ROUND_LOOKAHEAD_CHARS]
    found = _ROUND.search(window)
    if found is None:
        return None
    return " ".join(part.capitalize() if len(part) > 1 else part.upper() for part in found.group(1).split())
