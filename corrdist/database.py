from __future__ import annotations

from enum import Enum
import threading
from typing import Any, Iterable, Iterator, Sequence

import numpy as np
from sklearn.neighbors import NearestNeighbors

from .errors import MissingAssociationError


class AssociationID(str, Enum):
    LOCAL_PCA = "local_pca"


class PreprocessingState(Enum):
    UNSET = "unset"
    COMPUTING = "computing"
    READY = "ready"


def _kind_key(kind: AssociationID | str) -> str:
    if isinstance(kind, AssociationID):
        return kind.value
    return str(kind)


class AssociationStore:
    """Per-kind mapping from point id to an associated value.

    Each kind carries a ``PreprocessingState``. Writes take a lock so that
    workers may store disjoint keys concurrently; reads are plain dictionary
    lookups and are safe once a kind is READY.
    """

    def __init__(self) -> None:
        self._values: dict[str, dict[int, Any]] = {}
        self._states: dict[str, PreprocessingState] = {}
        self._lock = threading.Lock()

    def state(self, kind: AssociationID | str) -> PreprocessingState:
        return self._states.get(_kind_key(kind), PreprocessingState.UNSET)

    def set_state(self, kind: AssociationID | str, state: PreprocessingState) -> None:
        with self._lock:
            self._states[_kind_key(kind)] = state

    def is_set(self, kind: AssociationID | str) -> bool:
        return self.state(kind) is PreprocessingState.READY

    def set(self, kind: AssociationID | str, point_id: int, value: Any) -> None:
        key = _kind_key(kind)
        with self._lock:
            self._values.setdefault(key, {})[point_id] = value

    def has(self, kind: AssociationID | str, point_id: int) -> bool:
        return point_id in self._values.get(_kind_key(kind), {})

    def get(self, kind: AssociationID | str, point_id: int) -> Any:
        key = _kind_key(kind)
        try:
            return self._values[key][point_id]
        except KeyError:
            raise MissingAssociationError(key, point_id) from None

    def missing(self, kind: AssociationID | str, point_ids: Iterable[int]) -> list[int]:
        values = self._values.get(_kind_key(kind), {})
        return [pid for pid in point_ids if pid not in values]

    def count(self, kind: AssociationID | str) -> int:
        return len(self._values.get(_kind_key(kind), {}))

    def clear(self, kind: AssociationID | str) -> None:
        key = _kind_key(kind)
        with self._lock:
            self._values.pop(key, None)
            self._states.pop(key, None)


class VectorDatabase:
    """Immutable snapshot of a vector dataset with per-point associations.

    Point identity is an integer id, independent of the coordinates: two
    points may share the same vector. Neighborhood queries use Euclidean
    distance over a lazily built scikit-learn index.
    """

    def __init__(self, vectors: Any, ids: Sequence[int] | None = None) -> None:
        data = np.array(vectors, dtype=np.float64)
        if data.ndim != 2:
            raise ValueError(f"vectors must be a 2-D array, got shape={data.shape}")
        if data.shape[0] == 0 or data.shape[1] == 0:
            raise ValueError(f"vectors must be non-empty, got shape={data.shape}")
        if not np.all(np.isfinite(data)):
            raise ValueError("vectors contain NaN or infinite values")
        data.setflags(write=False)

        if ids is None:
            point_ids = list(range(data.shape[0]))
        else:
            point_ids = [int(pid) for pid in ids]
            if len(point_ids) != data.shape[0]:
                raise ValueError(f"ids length ({len(point_ids)}) does not match vector rows ({data.shape[0]})")
            if len(set(point_ids)) != len(point_ids):
                raise ValueError("ids must be unique")

        self._data = data
        self._ids = tuple(point_ids)
        self._row_of = {pid: row for row, pid in enumerate(point_ids)}
        self._associations = AssociationStore()
        self._index: NearestNeighbors | None = None
        self._index_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[int]:
        return iter(self._ids)

    def __contains__(self, point_id: object) -> bool:
        return point_id in self._row_of

    @property
    def ids(self) -> tuple[int, ...]:
        return self._ids

    @property
    def dimensionality(self) -> int:
        return int(self._data.shape[1])

    @property
    def vectors(self) -> np.ndarray:
        return self._data

    @property
    def associations(self) -> AssociationStore:
        return self._associations

    def _row(self, point_id: int) -> int:
        try:
            return self._row_of[point_id]
        except KeyError:
            raise KeyError(f"Unknown point id {point_id}") from None

    def get(self, point_id: int) -> np.ndarray:
        return self._data[self._row(point_id)]

    def rows(self, point_ids: Sequence[int]) -> np.ndarray:
        return self._data[[self._row(pid) for pid in point_ids]]

    def is_association_set(self, kind: AssociationID | str) -> bool:
        return self._associations.is_set(kind)

    def set_association(self, kind: AssociationID | str, point_id: int, value: Any) -> None:
        self._row(point_id)
        self._associations.set(kind, point_id, value)

    def get_association(self, kind: AssociationID | str, point_id: int) -> Any:
        return self._associations.get(kind, point_id)

    def has_association(self, kind: AssociationID | str, point_id: int) -> bool:
        return self._associations.has(kind, point_id)

    def _nearest_neighbors(self) -> NearestNeighbors:
        with self._index_lock:
            if self._index is None:
                self._index = NearestNeighbors(metric="euclidean").fit(self._data)
            return self._index

    def knn_query(self, point_id: int, k: int) -> list[int]:
        if k <= 0:
            raise ValueError(f"k must be positive, got {k}")
        k = min(k, len(self))
        query = self.get(point_id).reshape(1, -1)
        _, indices = self._nearest_neighbors().kneighbors(query, n_neighbors=k)
        return [self._ids[int(i)] for i in indices[0]]

    def range_query(self, point_id: int, epsilon: float) -> list[int]:
        if epsilon < 0:
            raise ValueError(f"epsilon must be non-negative, got {epsilon}")
        query = self.get(point_id).reshape(1, -1)
        _, indices = self._nearest_neighbors().radius_neighbors(query, radius=epsilon, sort_results=True)
        return [self._ids[int(i)] for i in indices[0]]
