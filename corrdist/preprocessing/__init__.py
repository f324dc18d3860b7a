from .neighborhood import KnnNeighborhood, NeighborhoodProvider, RangeNeighborhood
from .preprocessor import CorrelationDimensionPreprocessor
from .registry import DEFAULT_PREPROCESSOR, create, describe_preprocessors, register, supported_preprocessors

__all__ = [
    "KnnNeighborhood",
    "NeighborhoodProvider",
    "RangeNeighborhood",
    "CorrelationDimensionPreprocessor",
    "DEFAULT_PREPROCESSOR",
    "create",
    "describe_preprocessors",
    "register",
    "supported_preprocessors",
]
