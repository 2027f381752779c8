"""
pipelinegraph

Component graph synchronization engine for visual pipeline editors.

A pipeline specification (a graph component made of tasks wired by argument
references) is the single source of truth. This package provides:
- the spec -> node/edge view projection
- pure structural edits with referential integrity (no dangling references),
  including collapsing tasks into nested graphs and editing those by path
- an editing session (single writer, undo/redo, selection) and a view adapter
  turning canvas change events into edits
- boundary collaborators: YAML/dict codec, component resolution, pipeline
  stores, execution status overlay, structural validation

Rendering, layout and execution are expected to live in the host application.
"""

from .components import CachingComponentResolver, ComponentResolutionError, component_digest, hydrate_pipeline
from .core.annotations import ORIGIN, Position, decode_position, encode_position
from .core.arguments import (
    ArgumentKind,
    GraphInputArgument,
    LiteralArgument,
    TaskOutputArgument,
    classify_argument,
)
from .core.config import EditorConfig
from .core.errors import EditError, EditResult, InvalidArgumentError, MissingSpec, StructuralViolation
from .core.models import (
    ComponentReference,
    ComponentSpec,
    ContainerImplementation,
    GraphImplementation,
    GraphSpec,
    InputSpec,
    OutputSpec,
    PipelineSpec,
    TaskSpec,
    new_graph_pipeline,
)
from .edits import (
    add_and_connect_node,
    connect,
    connect_edge,
    create_subgraph_from_nodes,
    disconnect,
    drop_new_node,
    duplicate_nodes,
    edit_subgraph,
    get_subgraph_spec,
    remove_component_input,
    remove_component_output,
    remove_node,
    remove_nodes,
    remove_task,
    rename_port,
    replace_task_component,
    set_graph_output_value,
    set_task_argument,
    update_positions,
    update_positions_many,
)
from .logging import configure_logging, get_logger
from .serialization import (
    SerializationError,
    component_spec_from_dict,
    component_spec_to_dict,
    default_pipeline,
    dump_pipeline_yaml,
    load_pipeline_yaml,
)
from .session import EditingSession
from .status import apply_task_statuses, clear_task_statuses, is_task_locked, task_status
from .storage import InMemoryPipelineStore, JsonFilePipelineStore, PipelineEntry, PipelineStore, PipelineStoreError
from .validation import ValidationIssue, ValidationReport, is_valid, run_external_validator, validate_pipeline
from .view import NodeType, ViewEdge, ViewGraph, ViewNode, project
from .view.adapter import ViewAdapter

__all__ = [
    # Document model
    "ComponentReference",
    "ComponentSpec",
    "ContainerImplementation",
    "GraphImplementation",
    "GraphSpec",
    "InputSpec",
    "OutputSpec",
    "PipelineSpec",
    "TaskSpec",
    "new_graph_pipeline",
    # Arguments + annotations
    "ArgumentKind",
    "GraphInputArgument",
    "LiteralArgument",
    "TaskOutputArgument",
    "classify_argument",
    "ORIGIN",
    "Position",
    "decode_position",
    "encode_position",
    # Errors + config
    "EditError",
    "EditResult",
    "InvalidArgumentError",
    "MissingSpec",
    "StructuralViolation",
    "EditorConfig",
    # Edits
    "add_and_connect_node",
    "connect",
    "connect_edge",
    "create_subgraph_from_nodes",
    "disconnect",
    "drop_new_node",
    "duplicate_nodes",
    "edit_subgraph",
    "get_subgraph_spec",
    "remove_component_input",
    "remove_component_output",
    "remove_node",
    "remove_nodes",
    "remove_task",
    "rename_port",
    "replace_task_component",
    "set_graph_output_value",
    "set_task_argument",
    "update_positions",
    "update_positions_many",
    # View
    "NodeType",
    "ViewEdge",
    "ViewGraph",
    "ViewNode",
    "project",
    "ViewAdapter",
    # Session
    "EditingSession",
    # Boundary
    "SerializationError",
    "component_spec_from_dict",
    "component_spec_to_dict",
    "default_pipeline",
    "dump_pipeline_yaml",
    "load_pipeline_yaml",
    "CachingComponentResolver",
    "ComponentResolutionError",
    "component_digest",
    "hydrate_pipeline",
    "InMemoryPipelineStore",
    "JsonFilePipelineStore",
    "PipelineEntry",
    "PipelineStore",
    "PipelineStoreError",
    "apply_task_statuses",
    "clear_task_statuses",
    "is_task_locked",
    "task_status",
    "ValidationIssue",
    "ValidationReport",
    "is_valid",
    "run_external_validator",
    "validate_pipeline",
    # Logging
    "configure_logging",
    "get_logger",
]
