from .base import PipelineEntry, PipelineStore, PipelineStoreError
from .in_memory import InMemoryPipelineStore
from .json_files import JsonFilePipelineStore

__all__ = [
    "PipelineEntry",
    "PipelineStore",
    "PipelineStoreError",
    "InMemoryPipelineStore",
    "JsonFilePipelineStore",
]
