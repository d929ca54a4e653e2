"""Error metrics, the training driver and pipeline assembly."""

from . import error_metrics, pipelines, trainer

__all__ = ["error_metrics", "pipelines", "trainer"]
