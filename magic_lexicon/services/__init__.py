"""Service layer tying the word store to the inference client."""

from .inference import ChunkCallback, InferenceClient
from .resolution import (
    Answered,
    Failed,
    Found,
    Generated,
    QueryMode,
    ResolutionCoordinator,
    ResolutionOutcome,
    classify_query,
)

__all__ = [
    "Answered",
    "ChunkCallback",
    "Failed",
    "Found",
    "Generated",
    "InferenceClient",
    "QueryMode",
    "ResolutionCoordinator",
    "ResolutionOutcome",
    "classify_query",
]
