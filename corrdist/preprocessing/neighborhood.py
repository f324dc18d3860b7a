from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import numpy as np

from ..database import VectorDatabase


class NeighborhoodProvider(Protocol):
    def neighborhood(self, point_id: int, database: VectorDatabase) -> np.ndarray: ...


@dataclass(frozen=True)
class KnnNeighborhood:
    """The ``k`` nearest neighbors of a point, the point itself included.

    ``k=None`` uses three times the dimensionality of the database.
    """

    k: int | None = None

    def __post_init__(self) -> None:
        if self.k is not None and self.k <= 0:
            raise ValueError(f"k must be positive, got {self.k}")

    def resolve_k(self, database: VectorDatabase) -> int:
        k = self.k if self.k is not None else 3 * database.dimensionality
        return min(k, len(database))

    def neighborhood(self, point_id: int, database: VectorDatabase) -> np.ndarray:
        return database.rows(database.knn_query(point_id, self.resolve_k(database)))

    def describe(self) -> dict[str, Any]:
        return {"type": "knn", "k": self.k}


@dataclass(frozen=True)
class RangeNeighborhood:
    """All points within Euclidean distance ``epsilon`` of a point, the point itself included."""

    epsilon: float

    def __post_init__(self) -> None:
        if self.epsilon < 0:
            raise ValueError(f"epsilon must be non-negative, got {self.epsilon}")

    def neighborhood(self, point_id: int, database: VectorDatabase) -> np.ndarray:
        return database.rows(database.range_query(point_id, self.epsilon))

    def describe(self) -> dict[str, Any]:
        return {"type": "range", "epsilon": self.epsilon}
