"""Pipeline orchestrators and main entry points"""

from .similarity_pipeline import SimilarityPipeline
from .pipeline_factory import PipelineFactory

__all__ = [
    "SimilarityPipeline",
    "PipelineFactory",
]
