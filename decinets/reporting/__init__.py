"""Reporting utilities for decinets."""

from .artifacts import write_manifest
from .console import ConsoleReporter, format_predictions, format_weights, render_digit
from .metrics import CsvSink, JsonlSink
from .plots import PlotAdapter

__all__ = [
    "ConsoleReporter",
    "CsvSink",
    "JsonlSink",
    "PlotAdapter",
    "format_predictions",
    "format_weights",
    "render_digit",
    "write_manifest",
]
