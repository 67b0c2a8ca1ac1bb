# =============================================================================
# core/search/field_resolver.py - Logical Field -> Sheet Header Resolution
# =============================================================================
# Uploaded sheets name the same column differently ("Due Date" vs
# "Payment Due", "Supplier Name" vs "supplier name"). A FieldResolver maps a
# logical field to the header actually present in a batch:
#
#   1. exact match, trying aliases in order
#   2. case-insensitive literal match, trying aliases in order
#
# No fuzzy matching. An unresolved field returns None and the caller skips
# that one filter; the rest of the search still runs.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

logger = logging.getLogger(__name__)


@dataclass
class FieldResolver:
    """
    Resolves logical fields against one batch's headers.

    Example:
        resolver = FieldResolver(
            aliases={"supplier": ["Supplier Name"]},
            headers=["rowIndex", "supplier name", "Total"],
        )
        resolver.resolve("supplier")  # "supplier name"
        resolver.resolve("buyer")     # None
    """

    aliases: Mapping[str, Sequence[str]]
    headers: list[str]
    _cache: dict[str, str | None] = field(default_factory=dict, init=False, repr=False)
    unresolved: list[str] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        self.headers = list(self.headers)
        self._lower = {}
        for header in self.headers:
            # First header wins when two differ only by case
            self._lower.setdefault(header.lower(), header)

    def resolve(self, logical_field: str) -> str | None:
        """
        Header for a logical field, or None when no alias matches.

        The result is cached per resolver, so headers are looked up once
        per search no matter how many records are filtered.
        """
        if logical_field in self._cache:
            return self._cache[logical_field]

        candidates = self.aliases.get(logical_field, (logical_field,))
        header = _match(candidates, self.headers, self._lower)

        if header is None:
            self.unresolved.append(logical_field)
            logger.warning(
                f"Column for '{logical_field}' not found (tried {list(candidates)}). "
                f"Available headers: {self.headers}"
            )
        elif header not in candidates:
            logger.debug(f"'{logical_field}' matched header '{header}' case-insensitively")

        self._cache[logical_field] = header
        return header


def _match(
    candidates: Iterable[str],
    headers: list[str],
    lower_index: Mapping[str, str],
) -> str | None:
    candidates = list(candidates)

    header_set = set(headers)
    for alias in candidates:
        if alias in header_set:
            return alias

    for alias in candidates:
        found = lower_index.get(alias.lower())
        if found is not None:
            return found

    return None


def resolve_field(
    logical_field: str,
    headers: Sequence[str],
    aliases: Mapping[str, Sequence[str]],
) -> str | None:
    """One-off resolution without keeping a resolver around."""
    return FieldResolver(aliases=aliases, headers=list(headers)).resolve(logical_field)
