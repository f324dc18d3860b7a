from __future__ import annotations

from typing import Any, Callable

from ..pca.local_pca import LocalPCAConfig
from .neighborhood import KnnNeighborhood, RangeNeighborhood
from .preprocessor import CorrelationDimensionPreprocessor


PreprocessorFactory = Callable[..., CorrelationDimensionPreprocessor]

DEFAULT_PREPROCESSOR = "knn"

_REGISTRY: dict[str, PreprocessorFactory] = {}
_DESCRIPTIONS: dict[str, str] = {}


def register(name: str, factory: PreprocessorFactory, description: str = "") -> None:
    _REGISTRY[name] = factory
    _DESCRIPTIONS[name] = description


def create(name: str = DEFAULT_PREPROCESSOR, **params: Any) -> CorrelationDimensionPreprocessor:
    if name not in _REGISTRY:
        raise ValueError(f"Unknown preprocessor '{name}'. Registered: {sorted(_REGISTRY.keys())}")
    return _REGISTRY[name](**params)


def supported_preprocessors() -> list[str]:
    return sorted(_REGISTRY.keys())


def describe_preprocessors() -> dict[str, str]:
    return {name: _DESCRIPTIONS[name] for name in supported_preprocessors()}


def _knn_factory(
    *,
    k: int | None = None,
    config: LocalPCAConfig | None = None,
    n_jobs: int = 1,
) -> CorrelationDimensionPreprocessor:
    return CorrelationDimensionPreprocessor(KnnNeighborhood(k=k), config, n_jobs=n_jobs, name="knn")


def _range_factory(
    *,
    epsilon: float,
    config: LocalPCAConfig | None = None,
    n_jobs: int = 1,
) -> CorrelationDimensionPreprocessor:
    return CorrelationDimensionPreprocessor(RangeNeighborhood(epsilon=epsilon), config, n_jobs=n_jobs, name="range")


register(
    "knn",
    _knn_factory,
    "Local PCA over the k nearest neighbors of each point (k defaults to 3 x dimensionality)",
)
register(
    "range",
    _range_factory,
    "Local PCA over all points within distance epsilon of each point",
)
