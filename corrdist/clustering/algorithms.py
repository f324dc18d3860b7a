from __future__ import annotations

from typing import Any

import numpy as np
from sklearn.cluster import DBSCAN

from .metrics import (
    compute_cluster_sizes,
    compute_partition_internal_metrics,
    compute_partition_offline_metrics,
)


def run_dbscan(
    *,
    distances: np.ndarray,
    labels_true: np.ndarray | None,
    eps_list: list[float],
    min_samples: int,
    use_offline_metrics: bool,
) -> list[dict[str, Any]]:
    if distances.ndim != 2 or distances.shape[0] != distances.shape[1]:
        raise ValueError(f"distances must be a square matrix, got shape={distances.shape}")

    results: list[dict[str, Any]] = []
    for eps in eps_list:
        model = DBSCAN(eps=eps, min_samples=min_samples, metric="precomputed")
        labels_pred = model.fit_predict(distances)

        internal = compute_partition_internal_metrics(distances, labels_pred)
        offline = compute_partition_offline_metrics(labels_true, labels_pred) if use_offline_metrics else None

        results.append(
            {
                "algorithm": "dbscan",
                "variant": f"dbscan_eps{eps:g}_min{min_samples}",
                "eps": eps,
                "min_samples": min_samples,
                "labels_pred": labels_pred,
                "selection_value": internal.get("silhouette"),
                "cluster_sizes": compute_cluster_sizes(labels_pred),
                "partition_internal_metrics": internal,
                "partition_offline_metrics": offline,
            }
        )
    return results
