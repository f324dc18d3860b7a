from .counter import DistanceCounter
from .locally_weighted import LocallyWeightedDistance, locally_weighted_distance, quadratic_form_distance

__all__ = [
    "DistanceCounter",
    "LocallyWeightedDistance",
    "locally_weighted_distance",
    "quadratic_form_distance",
]
