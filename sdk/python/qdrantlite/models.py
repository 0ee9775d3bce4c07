"""SDK data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence


class Distance(str, Enum):
    """Distance metric of a collection.

    `parse` is the only way names reach the wire: "DOT" and "COSINE" are
    recognized case-insensitively, every other value (including None) maps
    to EUCLID.
    """

    EUCLID = "EUCLID"
    DOT = "DOT"
    COSINE = "COSINE"

    @classmethod
    def parse(cls, name: str | Distance | None) -> Distance:
        if isinstance(name, Distance):
            return name
        if isinstance(name, str):
            normalized = name.strip().upper()
            if normalized == "DOT":
                return cls.DOT
            if normalized == "COSINE":
                return cls.COSINE
        return cls.EUCLID


@dataclass(frozen=True)
class Point:
    """Represents a point to upsert."""

    id: str
    vector: list[float]
    payload: dict[str, Any] | None = None


@dataclass(frozen=True)
class ScoredPoint:
    """Represents one search hit, ranked by the service."""

    id: str
    vector: list[float]
    payload: dict[str, Any] = field(default_factory=dict)
    score: float = 0.0


@dataclass(frozen=True)
class HealthInfo:
    """Represents a health check response."""

    title: str
    version: str


@dataclass(frozen=True)
class SnapshotInfo:
    """Represents a created collection snapshot."""

    name: str
    size: int


def unzip_scored_points(
    hits: Sequence[ScoredPoint],
) -> tuple[list[str], list[list[float]], list[dict[str, Any]], list[float]]:
    """Splits search hits into index-aligned (ids, vectors, payloads, scores)."""
    return (
        [hit.id for hit in hits],
        [hit.vector for hit in hits],
        [hit.payload for hit in hits],
        [hit.score for hit in hits],
    )
