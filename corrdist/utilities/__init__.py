from .feature_file import FeatureBundle, load_feature_file
from .run_context import RunContext, create_run_context
from .serialization import json_ready

__all__ = [
    "FeatureBundle",
    "load_feature_file",
    "RunContext",
    "create_run_context",
    "json_ready",
]
