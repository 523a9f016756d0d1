"""Read-model composer: declarative pipelines over the normalized stores."""

from vidtube.readmodels.collections import PipelineError, get_collection, load_document
from vidtube.readmodels.pipeline import Pipeline, PipelineOrderError

__all__ = [
    "Pipeline",
    "PipelineError",
    "PipelineOrderError",
    "get_collection",
    "load_document",
]
