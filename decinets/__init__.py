"""decinets public API."""

from .core import activations  # noqa: F401
from .core import types  # noqa: F401
from .core.arithmetic import DecimalArithmetic, to_decimal
from .core.network import NeuralNetwork
from .core.types import ContractViolation, Sample, TrainingResult, TrainingState
from .training.error_metrics import MarginClamped, WinnerTakeAll
from .training.pipelines import load_preset, presets, run_pipeline
from .training.trainer import Trainer

__all__ = [
    "ContractViolation",
    "DecimalArithmetic",
    "MarginClamped",
    "NeuralNetwork",
    "Sample",
    "Trainer",
    "TrainingResult",
    "TrainingState",
    "WinnerTakeAll",
    "activations",
    "load_preset",
    "presets",
    "run_pipeline",
    "to_decimal",
    "types",
]
