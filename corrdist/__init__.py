from .database import AssociationID, AssociationStore, PreprocessingState, VectorDatabase
from .distance import DistanceCounter, LocallyWeightedDistance, locally_weighted_distance
from .errors import InvalidInputError, MissingAssociationError, NumericInstabilityError
from .pca import LocalPCAConfig, LocalPCAResult, compute_local_pca
from .preprocessing import (
    CorrelationDimensionPreprocessor,
    KnnNeighborhood,
    RangeNeighborhood,
    create,
    register,
    supported_preprocessors,
)

__version__ = "0.1.0"

__all__ = [
    "AssociationID",
    "AssociationStore",
    "PreprocessingState",
    "VectorDatabase",
    "DistanceCounter",
    "LocallyWeightedDistance",
    "locally_weighted_distance",
    "InvalidInputError",
    "MissingAssociationError",
    "NumericInstabilityError",
    "LocalPCAConfig",
    "LocalPCAResult",
    "compute_local_pca",
    "CorrelationDimensionPreprocessor",
    "KnnNeighborhood",
    "RangeNeighborhood",
    "create",
    "register",
    "supported_preprocessors",
]
