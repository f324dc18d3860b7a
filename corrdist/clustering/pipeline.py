from __future__ import annotations

from datetime import datetime, timezone
import logging
from pathlib import Path
from time import perf_counter
from typing import Any

import numpy as np

from .algorithms import run_dbscan
from .metrics import pick_winner, sanitize_eps_list, summarize_offline_eval
from ..database import VectorDatabase
from ..distance.locally_weighted import LocallyWeightedDistance
from ..pca.local_pca import LocalPCAConfig
from ..preprocessing.registry import create
from ..preprocessing.reporting import collect_local_pca_summary, summarize_correlation_dimensions
from ..utilities.feature_file import load_feature_file
from ..utilities.run_context import create_run_context


SCRIPT_VERSION = "1.0.0"

logger = logging.getLogger(__name__)


def run_clustering_pipeline(
    *,
    feature_file: Path,
    output_root: Path,
    run_id: str | None,
    preprocessor_name: str,
    preprocessor_params: dict[str, Any],
    local_pca_config: LocalPCAConfig,
    n_jobs: int,
    force_preprocessing: bool,
    eps_list: list[float],
    min_samples: int,
    use_offline_label_metrics: bool,
) -> dict[str, Any]:
    bundle = load_feature_file(feature_file)
    labels_true = bundle.labels
    if use_offline_label_metrics and labels_true is None:
        raise ValueError("--use-offline-label-metrics requested but no labels were available")

    resolved_eps, warnings = sanitize_eps_list(eps_list)
    if not resolved_eps:
        raise ValueError(f"No valid eps values in {eps_list}")
    if min_samples < 1:
        raise ValueError(f"min_samples must be >=1, got {min_samples}")

    ctx = create_run_context(pipeline="clustering", output_root=output_root, run_id=run_id)

    database = VectorDatabase(bundle.features)
    preprocessor = create(preprocessor_name, config=local_pca_config, n_jobs=n_jobs, **preprocessor_params)
    distance = LocallyWeightedDistance(preprocessor, force=force_preprocessing)

    start = perf_counter()
    distance.bind(database)
    ctx.add_timing("local_pca_seconds", perf_counter() - start)

    start = perf_counter()
    distances = distance.distance_matrix()
    ctx.add_timing("distance_matrix_seconds", perf_counter() - start)

    distances_path = ctx.features_dir / "locally_weighted_distances.npy"
    np.save(distances_path, distances)
    ctx.add_artifact("distances", distances_path)

    all_results = run_dbscan(
        distances=distances,
        labels_true=labels_true,
        eps_list=resolved_eps,
        min_samples=min_samples,
        use_offline_metrics=use_offline_label_metrics,
    )
    selection = pick_winner(all_results)
    offline_summary = summarize_offline_eval(all_results) if use_offline_label_metrics else {}
    logger.info("Evaluated %d DBSCAN variant(s) on %d point(s)", len(all_results), len(database))

    rows = collect_local_pca_summary(database, bundle.point_names)
    report = {
        "data_info": {
            "n_samples": int(bundle.features.shape[0]),
            "n_features": int(bundle.features.shape[1]),
            "point_names": bundle.point_names,
        },
        "preprocessor": preprocessor.describe(),
        "correlation_dimensions": summarize_correlation_dimensions(rows, database.dimensionality),
        "distance_computations": distance.counter.value,
        "unsupervised_selection": selection,
        "offline_eval": offline_summary,
        "warnings": warnings,
        "algorithm_results": all_results,
    }
    report_path = ctx.write_json(ctx.reports_dir / "clustering_report.json", report)
    ctx.add_artifact("report", report_path)

    ctx.finalize(
        {
            "pipeline": "clustering",
            "script_version": SCRIPT_VERSION,
            "timestamp_utc": datetime.now(timezone.utc).isoformat(),
            "feature_file": str(feature_file),
            "preprocessor_name": preprocessor_name,
            "preprocessor_params": preprocessor_params,
            "local_pca": local_pca_config.to_dict(),
            "n_jobs": n_jobs,
            "force_preprocessing": force_preprocessing,
            "resolved_eps_list": resolved_eps,
            "min_samples": min_samples,
            "use_offline_label_metrics": use_offline_label_metrics,
            "warnings": warnings,
        }
    )
    return {
        "run_dir": str(ctx.run_dir),
        "report": str(report_path),
        "distances": str(distances_path),
    }
