"""Caller-constructed request types. They are validated before any request is sent."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote


@dataclass(frozen=True)
class PatentReference:
    """
    Identifies one patent document at OPS.

    Attributes:
        kind: Reference type: application, priority or publication.
        format: Number format: docdb or epodoc.
        number: The patent number in that format (e.g. "EP1000000").
    """

    kind: str
    format: str
    number: str

    @property
    def path(self) -> str:
        """The `{type}/{format}/{number}` path segment used by OPS, number percent-encoded."""
        return f"{self.kind}/{self.format}/{quote(self.number, safe='')}"


@dataclass(frozen=True)
class SearchOptions:
    """Optional search parameters: `range` (e.g. "1-25") and `constituent`."""

    range: Optional[str] = None
    constituent: Optional[str] = None


@dataclass(frozen=True)
class ClassificationOptions:
    """Optional classification lookup parameters."""

    ancestors: Optional[bool] = None
    navigation: Optional[bool] = None
    depth: Optional[str] = None
