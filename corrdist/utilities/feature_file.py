from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path

import numpy as np


@dataclass
class FeatureBundle:
    features: np.ndarray
    labels: np.ndarray | None
    point_names: list[str]


def load_feature_file(feature_file: Path) -> FeatureBundle:
    """Load a ``.npy`` matrix plus optional ``labels.npy`` / ``point_names.json`` beside it."""
    if not feature_file.exists():
        raise FileNotFoundError(f"Feature file not found: {feature_file}")
    features = np.load(feature_file)
    if features.ndim != 2:
        raise ValueError(f"Feature matrix must be 2-D, got shape={features.shape}")

    labels = None
    labels_path = feature_file.parent / "labels.npy"
    if labels_path.exists():
        labels = np.load(labels_path)
        if labels.shape[0] != features.shape[0]:
            raise ValueError(
                f"labels length ({labels.shape[0]}) does not match feature rows ({features.shape[0]})"
            )

    names_path = feature_file.parent / "point_names.json"
    if names_path.exists():
        with open(names_path, "r", encoding="utf-8") as f:
            point_names = [str(name) for name in json.load(f)]
        if len(point_names) != features.shape[0]:
            raise ValueError(
                f"point_names length ({len(point_names)}) does not match feature rows ({features.shape[0]})"
            )
    else:
        point_names = [f"point_{i}" for i in range(features.shape[0])]

    return FeatureBundle(features=features, labels=labels, point_names=point_names)
