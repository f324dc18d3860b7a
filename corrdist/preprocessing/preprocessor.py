from __future__ import annotations

import logging
from time import perf_counter
from typing import Any

from joblib import Parallel, delayed

from ..database import AssociationID, PreprocessingState, VectorDatabase
from ..pca.local_pca import LOCAL_PCA_VERSION, LocalPCAConfig, LocalPCAResult, compute_local_pca
from .neighborhood import NeighborhoodProvider


logger = logging.getLogger(__name__)


class CorrelationDimensionPreprocessor:
    """Associates a ``LocalPCAResult`` with every point of a database.

    Points are processed independently on a joblib thread pool. Results are
    stored only once the whole pass has succeeded, so a failure for any point
    leaves no association from the failed pass behind and the kind UNSET.
    """

    kind = AssociationID.LOCAL_PCA

    def __init__(
        self,
        neighborhood: NeighborhoodProvider,
        config: LocalPCAConfig | None = None,
        *,
        n_jobs: int = 1,
        name: str | None = None,
    ) -> None:
        if n_jobs == 0:
            raise ValueError("n_jobs must be non-zero")
        self.neighborhood = neighborhood
        self.config = config or LocalPCAConfig()
        self.n_jobs = n_jobs
        self.name = name or type(self).__name__

    def compute(self, point_id: int, database: VectorDatabase) -> LocalPCAResult:
        points = self.neighborhood.neighborhood(point_id, database)
        return compute_local_pca(database.get(point_id), points, self.config)

    def run(self, database: VectorDatabase, *, force: bool = False) -> int:
        store = database.associations
        if store.is_set(self.kind) and not force:
            logger.info("Associations '%s' already set; skipping preprocessing", self.kind.value)
            return 0

        point_ids = list(database.ids) if force else store.missing(self.kind, database.ids)
        store.set_state(self.kind, PreprocessingState.COMPUTING)
        logger.info(
            "Computing local PCA for %d of %d point(s) with %s (n_jobs=%d, force=%s)",
            len(point_ids),
            len(database),
            self.name,
            self.n_jobs,
            force,
        )

        start = perf_counter()
        try:
            results = Parallel(n_jobs=self.n_jobs, prefer="threads")(
                delayed(self.compute)(point_id, database) for point_id in point_ids
            )
        except Exception:
            store.set_state(self.kind, PreprocessingState.UNSET)
            logger.error("Local PCA preprocessing aborted after %.3fs", perf_counter() - start)
            raise

        for point_id, result in zip(point_ids, results):
            store.set(self.kind, point_id, result)
        store.set_state(self.kind, PreprocessingState.READY)
        logger.info("Local PCA preprocessing finished in %.3fs", perf_counter() - start)
        return len(point_ids)

    def _describe_neighborhood(self) -> dict[str, Any]:
        describe = getattr(self.neighborhood, "describe", None)
        if describe is None:
            return {"type": type(self.neighborhood).__name__}
        return describe()

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "version": LOCAL_PCA_VERSION,
            "neighborhood": self._describe_neighborhood(),
            "local_pca": self.config.to_dict(),
            "n_jobs": self.n_jobs,
        }
