from .algorithms import run_dbscan
from .pipeline import run_clustering_pipeline

__all__ = [
    "run_dbscan",
    "run_clustering_pipeline",
]
