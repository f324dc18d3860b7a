from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from time import perf_counter
from typing import Any

from ..database import VectorDatabase
from ..pca.local_pca import LocalPCAConfig
from ..utilities.feature_file import load_feature_file
from ..utilities.run_context import create_run_context
from .registry import create
from .reporting import collect_local_pca_summary, save_local_pca_table, summarize_correlation_dimensions


def run_preprocess_pipeline(
    *,
    feature_file: Path,
    output_root: Path,
    run_id: str | None,
    preprocessor_name: str,
    preprocessor_params: dict[str, Any],
    local_pca_config: LocalPCAConfig,
    n_jobs: int,
) -> dict[str, Any]:
    bundle = load_feature_file(feature_file)
    ctx = create_run_context(pipeline="preprocess", output_root=output_root, run_id=run_id)

    database = VectorDatabase(bundle.features)
    preprocessor = create(preprocessor_name, config=local_pca_config, n_jobs=n_jobs, **preprocessor_params)

    start = perf_counter()
    n_computed = preprocessor.run(database, force=True)
    ctx.add_timing("local_pca_seconds", perf_counter() - start)

    rows = collect_local_pca_summary(database, bundle.point_names)
    table_path = ctx.reports_dir / "local_pca_points.csv"
    save_local_pca_table(table_path, rows)
    ctx.add_artifact("local_pca_table", table_path)

    report = {
        "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        "feature_file": str(feature_file),
        "shape": [int(bundle.features.shape[0]), int(bundle.features.shape[1])],
        "n_computed": n_computed,
        "preprocessor": preprocessor.describe(),
        "correlation_dimensions": summarize_correlation_dimensions(rows, database.dimensionality),
    }
    report_path = ctx.write_json(ctx.reports_dir / "preprocess_report.json", report)
    ctx.add_artifact("report", report_path)

    ctx.finalize(
        {
            "pipeline": "preprocess",
            "feature_file": str(feature_file),
            "preprocessor_name": preprocessor_name,
            "preprocessor_params": preprocessor_params,
            "local_pca": local_pca_config.to_dict(),
            "n_jobs": n_jobs,
        }
    )
    return {
        "run_dir": str(ctx.run_dir),
        "report": str(report_path),
        "table": str(table_path),
    }
