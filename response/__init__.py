"""Villain response-model pipeline, hand store and batch driver."""

from response.orchestrator import BatchResult, HandOutcome, ResponseOrchestrator
from response.pipeline import ResponsePipeline, build_response_model
from response.ranges import Range
from response.service import ResponseService

__all__ = [
    "BatchResult",
    "HandOutcome",
    "Range",
    "ResponseOrchestrator",
    "ResponsePipeline",
    "ResponseService",
    "build_response_model",
]
