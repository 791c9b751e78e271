"""Occultation geometry, grid scanning, bracket refinement and search engine."""

from __future__ import annotations

from .engine import OccultationSearch, SearchResult, run_search
from .events import Bracket, EventInterval, OccultationWindow, Sample
from .geometry import (
    GeometryError,
    OccultationEvaluator,
    OcclusionGeometry,
    classify,
    evaluate,
    measure,
)
from .refine import ConvergenceError, SearchCancelled, refine
from .scanner import ScanResult, build_grid, find_brackets, iter_samples, scan

__all__ = [
    "Bracket",
    "ConvergenceError",
    "EventInterval",
    "GeometryError",
    "OccultationEvaluator",
    "OccultationSearch",
    "OccultationWindow",
    "OcclusionGeometry",
    "Sample",
    "ScanResult",
    "SearchCancelled",
    "SearchResult",
    "build_grid",
    "classify",
    "evaluate",
    "find_brackets",
    "iter_samples",
    "measure",
    "refine",
    "run_search",
    "scan",
]
