# =============================================================================
# core/search/filter_engine.py - Sparse Criteria Filtering
# =============================================================================
# Applies a set of optional filters to loose records as one AND predicate.
#
# Filter kinds:
# - SubstringFilter: case-insensitive "term is inside the cell value"
# - DateRangeFilter: inclusive from/to, "to" runs to the end of that day
# - NumberRangeFilter: inclusive min/max over amount-like cells
#
# Filters are applied one after another over the surviving records, which
# gives the same result as a per-record AND and lets us report how many
# records each filter removed (FilterDiagnostics).
#
# A filter whose logical field has no header in the batch is skipped, never
# raised. A cell that cannot be read as a date/number never matches a range
# filter, but only that filter rejects it.
# =============================================================================

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Sequence, Union

from core.models.records import LooseRecord
from core.search.date_parser import end_of_day, parse_date, parse_datetime, start_of_day
from core.search.field_resolver import FieldResolver

logger = logging.getLogger(__name__)

_CURRENCY_CHARS = re.compile(r"[€$£¥₹]")
_WHITESPACE = re.compile(r"\s+")


def parse_amount(value: Any) -> float | None:
    """
    Read a money-like cell as a number.

    Strips currency symbols and spaces; a lone comma is a decimal comma.

    Example:
        parse_amount("1 250,50 €")  # 1250.5
        parse_amount("$1,250.50")   # 1250.5
        parse_amount("1.200,00")    # 1200.0
        parse_amount("n/a")         # None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)

    text = _WHITESPACE.sub("", _CURRENCY_CHARS.sub("", str(value)))
    if not text:
        return None
    if "," in text and "." in text:
        # Rightmost separator is the decimal one
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    else:
        text = text.replace(",", ".")

    try:
        return float(text)
    except ValueError:
        return None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


# =============================================================================
# Filters
# =============================================================================

@dataclass(frozen=True)
class SubstringFilter:
    """Keep records whose field contains `term`, ignoring case."""

    name: str
    field: str
    term: str

    def matches(self, value: Any) -> bool:
        return self.term.lower() in _as_text(value).lower()


@dataclass(frozen=True)
class DateRangeFilter:
    """
    Keep records whose field falls inside [date_from, end of date_to].

    Bounds are given as text in any layout parse_date() accepts.
    """

    name: str
    field: str
    date_from: str | None = None
    date_to: str | None = None

    def bounds(self) -> tuple[date | None, date | None]:
        return parse_date(self.date_from), parse_date(self.date_to)

    def matches(self, value: Any) -> bool:
        cell = parse_datetime(value)
        if cell is None:
            return False

        lower, upper = self.bounds()
        if lower is not None and cell < start_of_day(lower):
            return False
        if upper is not None and cell > end_of_day(upper):
            return False
        return True


@dataclass(frozen=True)
class NumberRangeFilter:
    """Keep records whose field, read as an amount, is inside [minimum, maximum]."""

    name: str
    field: str
    minimum: float | None = None
    maximum: float | None = None

    def matches(self, value: Any) -> bool:
        amount = parse_amount(value)
        if amount is None:
            return False
        if self.minimum is not None and amount < self.minimum:
            return False
        if self.maximum is not None and amount > self.maximum:
            return False
        return True


Filter = Union[SubstringFilter, DateRangeFilter, NumberRangeFilter]


# =============================================================================
# Diagnostics
# =============================================================================

@dataclass
class FilterStep:
    """Record counts around one applied filter."""

    name: str
    column: str
    before: int
    after: int

    @property
    def removed(self) -> int:
        return self.before - self.after


@dataclass
class FilterDiagnostics:
    """Side-channel describing what the engine did with each filter."""

    input_count: int = 0
    output_count: int = 0
    available_headers: list[str] = field(default_factory=list)
    steps: list[FilterStep] = field(default_factory=list)
    skipped: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "inputCount": self.input_count,
            "outputCount": self.output_count,
            "appliedFilters": [
                {"filter": s.name, "column": s.column, "before": s.before, "after": s.after}
                for s in self.steps
            ],
            "skippedFilters": list(self.skipped),
        }


# =============================================================================
# Engine
# =============================================================================

class FilterEngine:
    """
    Runs filters over records using one batch's FieldResolver.

    Example:
        engine = FilterEngine(resolver)
        kept, diagnostics = engine.apply(records, [
            SubstringFilter("supplier_name", "supplier", "huolto"),
        ])
    """

    def __init__(self, resolver: FieldResolver):
        self.resolver = resolver

    def apply(
        self,
        records: Sequence[LooseRecord],
        filters: Sequence[Filter],
    ) -> tuple[list[LooseRecord], FilterDiagnostics]:
        """
        Filter records with every filter (AND).

        Args:
            records: Records to filter; never modified
            filters: Filters to apply; an empty list keeps everything

        Returns:
            (kept records in original order, diagnostics)
        """
        diagnostics = FilterDiagnostics(
            input_count=len(records),
            available_headers=list(self.resolver.headers),
        )
        kept = list(records)

        for flt in filters:
            column = self.resolver.resolve(flt.field)
            if column is None:
                diagnostics.skipped.append({
                    "filter": flt.name,
                    "reason": f"no column for '{flt.field}'",
                })
                continue

            if isinstance(flt, DateRangeFilter) and flt.bounds() == (None, None):
                logger.warning(
                    f"Date filter '{flt.name}' ignored: cannot parse "
                    f"from={flt.date_from!r} to={flt.date_to!r}"
                )
                diagnostics.skipped.append({
                    "filter": flt.name,
                    "reason": "unparseable date bounds",
                })
                continue

            before = len(kept)
            kept = [record for record in kept if flt.matches(record.get(column))]
            diagnostics.steps.append(FilterStep(flt.name, column, before, len(kept)))
            logger.debug(f"Filter {flt.name} on '{column}': {before} -> {len(kept)}")

        diagnostics.output_count = len(kept)
        return kept, diagnostics
