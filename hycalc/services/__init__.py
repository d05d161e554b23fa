"""Services that coordinate projection runs for callers."""

from .projection_service import ProjectionService

__all__ = ["ProjectionService"]
