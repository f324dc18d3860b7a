from __future__ import annotations

import csv
from pathlib import Path
from typing import Any

import numpy as np

from ..database import AssociationID, VectorDatabase


def collect_local_pca_summary(database: VectorDatabase, point_names: list[str]) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for name, point_id in zip(point_names, database.ids):
        result = database.get_association(AssociationID.LOCAL_PCA, point_id)
        rows.append(
            {
                "point_id": point_id,
                "point_name": name,
                "correlation_dimension": result.correlation_dimension,
                "neighborhood_size": result.neighborhood_size,
                "explained_variance_ratio": result.explained_variance_ratio,
            }
        )
    return rows


def summarize_correlation_dimensions(rows: list[dict[str, Any]], dimensionality: int) -> dict[str, Any]:
    dims = np.asarray([row["correlation_dimension"] for row in rows], dtype=np.int64)
    histogram = np.bincount(dims, minlength=dimensionality + 1)[1:]
    return {
        "n_points": int(dims.size),
        "dimensionality": int(dimensionality),
        "mean_correlation_dimension": float(dims.mean()) if dims.size else None,
        "histogram": {str(d + 1): int(count) for d, count in enumerate(histogram)},
    }


def save_local_pca_table(output_path: Path, rows: list[dict[str, Any]]) -> None:
    if not rows:
        return

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
