"""Sample-set registry and loaders."""

# Ensure built-in datasets register themselves when the package is imported.
from . import bitmap as _bitmap  # noqa: F401
from . import xor as _xor  # noqa: F401
from .registry import (
    SampleSet,
    available_datasets,
    get,
    register_dataset,
    split_control,
)

__all__ = [
    "SampleSet",
    "available_datasets",
    "get",
    "register_dataset",
    "split_control",
]
