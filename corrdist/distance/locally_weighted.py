"""Locally weighted quadratic-form distance.

For points ``p`` and ``q`` with weight matrices ``M_p`` and ``M_q``::

    dist_x = sqrt((p - q)^T M_x (p - q))
    distance(p, q) = max(dist_p, dist_q)

Each point judges the displacement with its own local notion of which
directions are expected; the max is large whenever either point sees the
other as leaving its local subspace, and makes the result symmetric.
"""
from __future__ import annotations

import logging
import math
from typing import Sequence

import numpy as np

from ..database import AssociationID, VectorDatabase
from ..preprocessing.preprocessor import CorrelationDimensionPreprocessor
from ..preprocessing.registry import DEFAULT_PREPROCESSOR, create
from .counter import DistanceCounter


logger = logging.getLogger(__name__)


def quadratic_form_distance(delta: np.ndarray, weight_matrix: np.ndarray) -> float:
    value = float(delta @ weight_matrix @ delta)
    # Rounding can push a PSD form of a tiny delta slightly below zero.
    return math.sqrt(value) if value > 0.0 else 0.0


def locally_weighted_distance(
    p: np.ndarray,
    q: np.ndarray,
    weight_matrix_p: np.ndarray,
    weight_matrix_q: np.ndarray,
) -> float:
    delta = np.asarray(p, dtype=np.float64) - np.asarray(q, dtype=np.float64)
    return max(
        quadratic_form_distance(delta, weight_matrix_p),
        quadratic_form_distance(delta, weight_matrix_q),
    )


class LocallyWeightedDistance:
    kind = AssociationID.LOCAL_PCA

    def __init__(
        self,
        preprocessor: CorrelationDimensionPreprocessor | None = None,
        *,
        force: bool = False,
        counter: DistanceCounter | None = None,
    ) -> None:
        self.preprocessor = preprocessor if preprocessor is not None else create(DEFAULT_PREPROCESSOR)
        self.force = force
        self.counter = counter if counter is not None else DistanceCounter()
        self._database: VectorDatabase | None = None

    @property
    def database(self) -> VectorDatabase:
        if self._database is None:
            raise RuntimeError("Distance function is not bound to a database; call bind() first")
        return self._database

    def bind(self, database: VectorDatabase) -> "LocallyWeightedDistance":
        self._database = database
        if self.force or not database.is_association_set(self.kind):
            self.preprocessor.run(database, force=self.force)
        return self

    def distance(self, p: int, q: int) -> float:
        database = self.database
        self.counter.increment()
        m_p = database.get_association(self.kind, p).weight_matrix
        m_q = database.get_association(self.kind, q).weight_matrix
        return locally_weighted_distance(database.get(p), database.get(q), m_p, m_q)

    __call__ = distance

    def distance_matrix(self, point_ids: Sequence[int] | None = None) -> np.ndarray:
        database = self.database
        ids = list(database.ids) if point_ids is None else list(point_ids)
        weight_matrices = [database.get_association(self.kind, pid).weight_matrix for pid in ids]
        vectors = database.rows(ids)

        n = len(ids)
        directed = np.empty((n, n), dtype=np.float64)
        for i, m in enumerate(weight_matrices):
            deltas = vectors[i] - vectors
            squared = np.sum((deltas @ m) * deltas, axis=1)
            np.maximum(squared, 0.0, out=squared)
            directed[i] = np.sqrt(squared)

        distances = np.maximum(directed, directed.T)
        np.fill_diagonal(distances, 0.0)
        self.counter.increment(n * (n - 1) // 2)
        logger.debug("Computed %dx%d locally weighted distance matrix", n, n)
        return distances
