"""Sample-set registry and metadata contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, MutableMapping, Sequence, Tuple

from ..core.types import Sample


@dataclass(frozen=True)
class SampleSet:
    """In-memory training and control samples produced by a dataset factory.

    Attributes
    ----------
    name:
        Registry identifier of the dataset.
    training:
        Samples that drive weight updates.
    control:
        Samples that are scored every epoch but never update weights.
    d_in:
        Length of every input vector.
    d_target:
        Length of every target vector.
    provenance:
        Free-form metadata describing where the samples came from.
    """

    name: str
    training: Tuple[Sample, ...]
    control: Tuple[Sample, ...] = ()
    d_in: int = 0
    d_target: int = 0
    provenance: Dict[str, Any] = field(default_factory=dict)

    @property
    def sizes(self) -> Dict[str, int]:
        return {"training": len(self.training), "control": len(self.control)}


DatasetFactory = Callable[..., SampleSet]


_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(
    name: str | None = None,
    factory: DatasetFactory | None = None,
) -> Callable[[DatasetFactory], DatasetFactory] | DatasetFactory:
    """Register a dataset factory.

    ``register_dataset`` can be used both as a decorator::

        @register_dataset("digits")
        def make_digits(**kwargs):
            ...

    or directly::

        register_dataset("digits", make_digits)
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[str(name or func.__name__)] = func
        return func

    if factory is not None:
        return _decorator(factory)
    if name is None:
        raise TypeError("register_dataset requires a name when used without a decorator")
    return _decorator


def get(dataset: str, /, **options: Any) -> SampleSet:
    """Build the :class:`SampleSet` registered under ``dataset``."""

    if dataset not in _REGISTRY:
        raise KeyError(f"Unknown dataset: {dataset}")
    sample_set = _REGISTRY[dataset](**options)
    _validate(sample_set)
    return sample_set


def available_datasets() -> Iterable[str]:
    """Return the sorted list of available dataset identifiers."""

    return sorted(_REGISTRY)


def split_control(
    samples: Sequence[Sample], every: int | None
) -> Tuple[Tuple[Sample, ...], Tuple[Sample, ...]]:
    """Move every ``every``-th sample (1-based) into the control set."""

    if not every:
        return tuple(samples), ()
    if every < 2:
        raise ValueError("control_split must be at least 2 so training keeps samples")
    training = tuple(s for i, s in enumerate(samples, start=1) if i % every)
    control = tuple(s for i, s in enumerate(samples, start=1) if not i % every)
    return training, control


def _validate(sample_set: SampleSet) -> None:
    for sample in sample_set.training + sample_set.control:
        if len(sample.inputs) != sample_set.d_in:
            raise ValueError(
                f"{sample_set.name}: sample has {len(sample.inputs)} inputs, "
                f"expected {sample_set.d_in}"
            )
        if len(sample.targets) != sample_set.d_target:
            raise ValueError(
                f"{sample_set.name}: sample has {len(sample.targets)} targets, "
                f"expected {sample_set.d_target}"
            )


__all__ = [
    "DatasetFactory",
    "SampleSet",
    "available_datasets",
    "get",
    "register_dataset",
    "split_control",
]
