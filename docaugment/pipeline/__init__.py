"""Document lifecycle state machine and the pipeline facade."""

from docaugment.pipeline.document_pipeline import DocumentPipeline
from docaugment.pipeline.lifecycle import DocumentLifecycleManager

__all__ = ["DocumentLifecycleManager", "DocumentPipeline"]
