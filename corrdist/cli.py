from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any

from .clustering.pipeline import run_clustering_pipeline
from .pca.local_pca import CENTER_CHOICES, LocalPCAConfig
from .preprocessing.pipeline import run_preprocess_pipeline
from .preprocessing.registry import DEFAULT_PREPROCESSOR, describe_preprocessors, supported_preprocessors


def _execution_root() -> Path:
    return Path.cwd().resolve()


def _is_filesystem_root(path: Path) -> bool:
    return path == path.parent


def _resolve_output_root(output_root: Path, caller: str) -> Path:
    root = _execution_root()
    candidate = output_root.expanduser()
    resolved = (candidate if candidate.is_absolute() else root / candidate).resolve()
    if resolved == root or _is_filesystem_root(resolved):
        # Never write caller artifacts directly at execution root or filesystem root.
        return (root / "runs" / caller).resolve()
    return resolved


def _preprocessor_params_from_args(args: argparse.Namespace) -> dict[str, Any]:
    if args.preprocessor == "range":
        if args.epsilon is None:
            raise ValueError("--epsilon is required for the 'range' preprocessor")
        return {"epsilon": args.epsilon}
    if args.preprocessor == "knn":
        return {"k": args.k}
    return {}


def _local_pca_config_from_args(args: argparse.Namespace) -> LocalPCAConfig:
    return LocalPCAConfig(
        variance_threshold=args.variance_threshold,
        strong_weight=args.strong_weight,
        weak_weight=args.weak_weight,
        center=args.center,
    )


def _cmd_run_clustering(args: argparse.Namespace) -> int:
    output_root = _resolve_output_root(args.output_root, "run_clustering")
    result = run_clustering_pipeline(
        feature_file=args.feature_file,
        output_root=output_root,
        run_id=args.run_id,
        preprocessor_name=args.preprocessor,
        preprocessor_params=_preprocessor_params_from_args(args),
        local_pca_config=_local_pca_config_from_args(args),
        n_jobs=args.n_jobs,
        force_preprocessing=args.force_preprocessing,
        eps_list=args.eps_list,
        min_samples=args.min_samples,
        use_offline_label_metrics=args.use_offline_label_metrics,
    )

    print("Run complete")
    print(f"Run dir: {result['run_dir']}")
    print(f"Report: {result['report']}")
    print(f"Distances: {result['distances']}")
    return 0


def _cmd_preprocess(args: argparse.Namespace) -> int:
    output_root = _resolve_output_root(args.output_root, "preprocess")
    result = run_preprocess_pipeline(
        feature_file=args.feature_file,
        output_root=output_root,
        run_id=args.run_id,
        preprocessor_name=args.preprocessor,
        preprocessor_params=_preprocessor_params_from_args(args),
        local_pca_config=_local_pca_config_from_args(args),
        n_jobs=args.n_jobs,
    )

    print("Local PCA preprocessing complete")
    print(f"Run dir: {result['run_dir']}")
    print(f"Report: {result['report']}")
    print(f"Point table: {result['table']}")
    return 0


def _cmd_list_preprocessors(args: argparse.Namespace) -> int:
    for name, description in describe_preprocessors().items():
        marker = " (default)" if name == DEFAULT_PREPROCESSOR else ""
        print(f"{name}{marker}")
        print(f"    {description}")
    return 0


def _add_preprocessing_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--feature-file", type=Path, required=True, help="Feature matrix (.npy), one row per point")
    parser.add_argument("--output-root", type=Path, default=Path("runs"), help="Output root for run artifacts")
    parser.add_argument("--run-id", type=str, default=None, help="Optional fixed run id")
    parser.add_argument("--preprocessor", choices=supported_preprocessors(), default=DEFAULT_PREPROCESSOR)
    parser.add_argument("--k", type=int, default=None, help="Neighborhood size for 'knn' (default: 3 x dim)")
    parser.add_argument("--epsilon", type=float, default=None, help="Neighborhood radius for 'range'")
    parser.add_argument("--variance-threshold", type=float, default=0.85)
    parser.add_argument("--strong-weight", type=float, default=1.0)
    parser.add_argument("--weak-weight", type=float, default=100.0)
    parser.add_argument("--center", choices=list(CENTER_CHOICES), default="centroid")
    parser.add_argument("--n-jobs", type=int, default=1, help="Worker threads for local PCA (-1 = all cores)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="corrdist unified CLI")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], default="WARNING")
    sub = parser.add_subparsers(dest="command_group", required=True)

    run_parser = sub.add_parser("run", help="Run end-to-end pipelines")
    run_sub = run_parser.add_subparsers(dest="run_command", required=True)

    clustering = run_sub.add_parser("clustering", help="DBSCAN over the locally weighted distance")
    _add_preprocessing_arguments(clustering)
    clustering.add_argument("--force-preprocessing", action="store_true", help="Recompute local PCA for every point")
    clustering.add_argument("--eps-list", nargs="+", type=float, default=[0.5, 1.0, 2.0, 4.0])
    clustering.add_argument("--min-samples", type=int, default=5)
    clustering.add_argument("--use-offline-label-metrics", action="store_true")
    clustering.set_defaults(func=_cmd_run_clustering)

    preprocess = sub.add_parser("preprocess", help="Compute and report local PCA for every point")
    _add_preprocessing_arguments(preprocess)
    preprocess.set_defaults(func=_cmd_preprocess)

    preprocessors_parser = sub.add_parser("preprocessors", help="Preprocessor commands")
    preprocessors_sub = preprocessors_parser.add_subparsers(dest="preprocessors_command", required=True)
    list_parser = preprocessors_sub.add_parser("list", help="List registered preprocessors")
    list_parser.set_defaults(func=_cmd_list_preprocessors)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
