"""Local correlation analysis of a point's neighborhood.

The scatter matrix of a neighborhood is eigendecomposed; the leading
eigenvectors explaining ``variance_threshold`` of the variance span the
"strong" subspace, the remaining ones the "weak" (correlation) subspace.
The weight matrix ``M = V diag(w) V^T`` keeps the strong weight along strong
directions and the much larger weak weight along weak directions, so that
``sqrt(delta^T M delta)`` penalizes deviations that leave the local subspace.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

import numpy as np
from scipy import linalg

from ..errors import InvalidInputError, NumericInstabilityError


logger = logging.getLogger(__name__)

LOCAL_PCA_VERSION = "1.0.0"

CENTER_CHOICES = ("centroid", "anchor")


@dataclass(frozen=True)
class LocalPCAConfig:
    variance_threshold: float = 0.85
    strong_weight: float = 1.0
    weak_weight: float = 100.0
    center: str = "centroid"
    eigen_tolerance: float = 1e-10

    def __post_init__(self) -> None:
        if not 0.0 < self.variance_threshold <= 1.0:
            raise ValueError(f"variance_threshold must be in (0, 1], got {self.variance_threshold}")
        if self.strong_weight <= 0.0:
            raise ValueError(f"strong_weight must be positive, got {self.strong_weight}")
        if self.weak_weight < self.strong_weight:
            raise ValueError(
                f"weak_weight ({self.weak_weight}) must not be smaller than strong_weight ({self.strong_weight})"
            )
        if self.center not in CENTER_CHOICES:
            raise ValueError(f"center must be one of {list(CENTER_CHOICES)}, got '{self.center}'")
        if self.eigen_tolerance < 0.0:
            raise ValueError(f"eigen_tolerance must be non-negative, got {self.eigen_tolerance}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "variance_threshold": self.variance_threshold,
            "strong_weight": self.strong_weight,
            "weak_weight": self.weak_weight,
            "center": self.center,
            "eigen_tolerance": self.eigen_tolerance,
        }


def _read_only(array: np.ndarray) -> np.ndarray:
    out = np.array(array, dtype=np.float64)
    out.setflags(write=False)
    return out


@dataclass(frozen=True, eq=False)
class LocalPCAResult:
    """Outcome of one local PCA, owned by the association store.

    ``eigenvectors`` holds one eigenvector per column, ordered like the
    descending ``eigenvalues``.
    """

    eigenvalues: np.ndarray
    eigenvectors: np.ndarray
    correlation_dimension: int
    weight_matrix: np.ndarray
    neighborhood_size: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "eigenvalues", _read_only(self.eigenvalues))
        object.__setattr__(self, "eigenvectors", _read_only(self.eigenvectors))
        object.__setattr__(self, "weight_matrix", _read_only(self.weight_matrix))
        dim = self.weight_matrix.shape[0]
        if self.weight_matrix.shape != (dim, dim):
            raise ValueError(f"weight_matrix must be square, got shape={self.weight_matrix.shape}")
        if not 1 <= self.correlation_dimension <= dim:
            raise ValueError(f"correlation_dimension must be in [1, {dim}], got {self.correlation_dimension}")

    @classmethod
    def from_weight_matrix(cls, weight_matrix: Any, correlation_dimension: int | None = None) -> "LocalPCAResult":
        m = np.asarray(weight_matrix, dtype=np.float64)
        if m.ndim != 2 or m.shape[0] != m.shape[1]:
            raise ValueError(f"weight_matrix must be square, got shape={m.shape}")
        if not np.allclose(m, m.T):
            raise ValueError("weight_matrix must be symmetric")
        eigenvalues, eigenvectors = sorted_eigenpairs(0.5 * (m + m.T))
        if eigenvalues[-1] < -1e-9 * float(np.max(np.abs(eigenvalues))):
            raise ValueError("weight_matrix must be positive-semidefinite")
        return cls(
            eigenvalues=np.clip(eigenvalues, 0.0, None),
            eigenvectors=eigenvectors,
            correlation_dimension=m.shape[0] if correlation_dimension is None else correlation_dimension,
            weight_matrix=m,
        )

    @property
    def dimensionality(self) -> int:
        return int(self.weight_matrix.shape[0])

    @property
    def strong_eigenvectors(self) -> np.ndarray:
        return self.eigenvectors[:, : self.correlation_dimension]

    @property
    def weak_eigenvectors(self) -> np.ndarray:
        return self.eigenvectors[:, self.correlation_dimension :]

    @property
    def explained_variance_ratio(self) -> float:
        total = float(self.eigenvalues.sum())
        if total <= 0.0:
            return 1.0
        return float(self.eigenvalues[: self.correlation_dimension].sum() / total)

    def summary(self) -> dict[str, Any]:
        return {
            "correlation_dimension": self.correlation_dimension,
            "neighborhood_size": self.neighborhood_size,
            "explained_variance_ratio": self.explained_variance_ratio,
            "eigenvalues": self.eigenvalues,
        }


def _validate_neighborhood(anchor: Any, neighborhood: Any) -> tuple[np.ndarray, np.ndarray]:
    points = np.asarray(neighborhood, dtype=np.float64)
    if points.size == 0:
        raise InvalidInputError("Neighborhood is empty")
    if points.ndim == 1:
        points = points.reshape(1, -1)
    if points.ndim != 2:
        raise InvalidInputError(f"Neighborhood must be a 2-D array, got shape={points.shape}")

    center = np.asarray(anchor, dtype=np.float64).reshape(-1)
    if center.shape[0] != points.shape[1]:
        raise InvalidInputError(
            f"Anchor dimensionality ({center.shape[0]}) does not match neighborhood ({points.shape[1]})"
        )
    if not (np.all(np.isfinite(points)) and np.all(np.isfinite(center))):
        raise InvalidInputError("Neighborhood or anchor contains NaN or infinite values")
    return center, points


def compute_scatter_matrix(anchor: Any, neighborhood: Any, *, center: str = "centroid") -> np.ndarray:
    """Covariance of ``neighborhood`` about its centroid or about ``anchor``, scaled by ``1/n``."""
    origin, points = _validate_neighborhood(anchor, neighborhood)
    return _scatter(origin, points, center)


def _scatter(origin: np.ndarray, points: np.ndarray, center: str) -> np.ndarray:
    if center == "centroid":
        origin = points.mean(axis=0)
    elif center != "anchor":
        raise ValueError(f"center must be one of {list(CENTER_CHOICES)}, got '{center}'")

    deviations = points - origin
    scatter = deviations.T @ deviations / points.shape[0]
    return 0.5 * (scatter + scatter.T)


def sorted_eigenpairs(matrix: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    try:
        eigvals, eigvecs = linalg.eigh(matrix, check_finite=False)
    except linalg.LinAlgError as exc:
        raise NumericInstabilityError("Eigendecomposition of the scatter matrix did not converge") from exc
    order = np.argsort(eigvals)[::-1]
    return eigvals[order], eigvecs[:, order]


def clamp_eigenvalues(eigenvalues: np.ndarray, tolerance: float) -> np.ndarray:
    eigenvalues = np.asarray(eigenvalues, dtype=np.float64)
    if eigenvalues.size == 0:
        return eigenvalues
    scale = float(np.max(np.abs(eigenvalues)))
    clamped = np.where(np.abs(eigenvalues) <= tolerance * scale, 0.0, eigenvalues)
    negative = clamped < 0.0
    if np.any(negative):
        logger.debug(
            "Clamping %d negative eigenvalue(s) beyond tolerance, min=%g",
            int(np.sum(negative)),
            float(clamped.min()),
        )
    return np.clip(clamped, 0.0, None)


def select_correlation_dimension(eigenvalues: np.ndarray, variance_threshold: float) -> int:
    """Smallest ``d`` whose leading ``d`` eigenvalues reach the threshold share of the total."""
    eigenvalues = np.asarray(eigenvalues, dtype=np.float64)
    if eigenvalues.size == 0:
        raise InvalidInputError("No eigenvalues to select a correlation dimension from")
    cumulative = np.cumsum(eigenvalues)
    target = variance_threshold * cumulative[-1]
    # Absorb rounding in the cumulative sum when the threshold is 1.0.
    reached = cumulative >= target - 1e-12 * float(cumulative[-1])
    return int(np.argmax(reached)) + 1


def build_weight_matrix(
    eigenvectors: np.ndarray,
    correlation_dimension: int,
    *,
    strong_weight: float,
    weak_weight: float,
) -> np.ndarray:
    dim = eigenvectors.shape[1]
    weights = np.full(dim, weak_weight, dtype=np.float64)
    weights[:correlation_dimension] = strong_weight
    m = (eigenvectors * weights) @ eigenvectors.T
    return 0.5 * (m + m.T)


def compute_local_pca(
    anchor: Any,
    neighborhood: Any,
    config: LocalPCAConfig | None = None,
) -> LocalPCAResult:
    config = config or LocalPCAConfig()
    origin, points = _validate_neighborhood(anchor, neighborhood)
    n_points, dim = points.shape
    if n_points < dim + 1:
        logger.debug(
            "Neighborhood of %d point(s) is smaller than dimensionality+1=%d; local PCA is degraded",
            n_points,
            dim + 1,
        )

    scatter = _scatter(origin, points, config.center)
    eigenvalues, eigenvectors = sorted_eigenpairs(scatter)
    eigenvalues = clamp_eigenvalues(eigenvalues, config.eigen_tolerance)

    correlation_dimension = select_correlation_dimension(eigenvalues, config.variance_threshold)
    weight_matrix = build_weight_matrix(
        eigenvectors,
        correlation_dimension,
        strong_weight=config.strong_weight,
        weak_weight=config.weak_weight,
    )
    return LocalPCAResult(
        eigenvalues=eigenvalues,
        eigenvectors=eigenvectors,
        correlation_dimension=correlation_dimension,
        weight_matrix=weight_matrix,
        neighborhood_size=n_points,
    )
