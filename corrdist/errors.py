from __future__ import annotations


class InvalidInputError(ValueError):
    """Raised when a neighborhood or anchor cannot support a local PCA."""


class MissingAssociationError(LookupError):
    """Raised when a point has no stored association of the requested kind."""

    def __init__(self, kind: str, point_id: int) -> None:
        super().__init__(f"No '{kind}' association stored for point {point_id}")
        self.kind = kind
        self.point_id = point_id


class NumericInstabilityError(RuntimeError):
    """Raised when the eigendecomposition of a scatter matrix does not converge."""
