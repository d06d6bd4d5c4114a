"""Service layer package.

Exports high-level services consumed by orchestration / presentation layers.
"""

from .dedupe_service import DedupeOptions, DedupeService, RunSummary

__all__ = ["DedupeOptions", "DedupeService", "RunSummary"]
