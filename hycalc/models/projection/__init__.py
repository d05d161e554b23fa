"""
Projection pipeline.

Key Components:
- engine: ProjectionEngine, which runs grid -> sources/uses -> amortization ->
  cash flows -> returns for one configuration snapshot
- result: ProjectionResult, the output record read by presentation layers
"""

from .engine import ProjectionEngine, run_projection
from .result import ProjectionResult

__all__ = ["ProjectionEngine", "ProjectionResult", "run_projection"]
