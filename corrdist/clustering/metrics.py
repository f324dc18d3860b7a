from __future__ import annotations

from typing import Any

import numpy as np
from sklearn.metrics import (
    adjusted_rand_score,
    homogeneity_score,
    normalized_mutual_info_score,
    silhouette_score,
    v_measure_score,
)


def sanitize_eps_list(eps_list: list[float]) -> tuple[list[float], list[str]]:
    valid: list[float] = []
    warnings: list[str] = []
    for eps in eps_list:
        if eps <= 0:
            warnings.append(f"Ignoring invalid eps={eps}; must be >0")
            continue
        valid.append(float(eps))
    return sorted(set(valid)), warnings


def compute_cluster_sizes(labels_pred: np.ndarray) -> dict[str, int]:
    unique, counts = np.unique(labels_pred, return_counts=True)
    return {str(int(label)): int(count) for label, count in zip(unique, counts)}


def compute_partition_internal_metrics(distances: np.ndarray, labels_pred: np.ndarray) -> dict[str, float | None]:
    unique_labels = np.unique(labels_pred)
    n_unique = unique_labels.size
    n_samples = distances.shape[0]

    metrics: dict[str, Any] = {
        "n_clusters_excluding_noise": int(np.sum(unique_labels >= 0)),
        "noise_fraction": float(np.mean(labels_pred < 0)) if n_samples else 0.0,
        "silhouette": None,
    }

    if n_unique < 2 or n_unique >= n_samples:
        return metrics

    try:
        metrics["silhouette"] = float(silhouette_score(distances, labels_pred, metric="precomputed"))
    except ValueError:
        metrics["silhouette"] = None

    return metrics


def compute_partition_offline_metrics(
    labels_true: np.ndarray | None,
    labels_pred: np.ndarray,
) -> dict[str, float | None]:
    metrics: dict[str, float | None] = {
        "adjusted_rand": None,
        "normalized_mutual_info": None,
        "homogeneity": None,
        "v_measure": None,
    }
    if labels_true is None:
        return metrics

    metrics["adjusted_rand"] = float(adjusted_rand_score(labels_true, labels_pred))
    metrics["normalized_mutual_info"] = float(normalized_mutual_info_score(labels_true, labels_pred))
    metrics["homogeneity"] = float(homogeneity_score(labels_true, labels_pred))
    metrics["v_measure"] = float(v_measure_score(labels_true, labels_pred))
    return metrics


def pick_winner(results: list[dict[str, Any]]) -> dict[str, Any] | None:
    candidates = [r for r in results if r.get("selection_value") is not None]
    if not candidates:
        return None
    best = max(candidates, key=lambda x: float(x["selection_value"]))
    return {
        "metric": "silhouette",
        "winner": {
            "algorithm": best["algorithm"],
            "variant": best["variant"],
            "selection_value": best["selection_value"],
        },
    }


def summarize_offline_eval(results: list[dict[str, Any]]) -> dict[str, Any]:
    valid = [
        r for r in results
        if r.get("partition_offline_metrics") is not None
        and r["partition_offline_metrics"].get("adjusted_rand") is not None
    ]
    if not valid:
        return {"best_partition_model_by_ari": None}

    best = max(valid, key=lambda x: x["partition_offline_metrics"]["adjusted_rand"])
    return {
        "best_partition_model_by_ari": {
            "algorithm": best["algorithm"],
            "variant": best["variant"],
            **best["partition_offline_metrics"],
        }
    }
