"""Document model, argument/identifier/annotation utilities, errors and configuration."""

from .annotations import (
    ORIGIN,
    POSITION_ANNOTATION,
    STATUS_ANNOTATION,
    Position,
    decode_position,
    encode_position,
    set_position,
)
from .arguments import (
    ArgumentKind,
    ArgumentValue,
    GraphInputArgument,
    LiteralArgument,
    TaskOutputArgument,
    argument_kind,
    argument_to_dict,
    classify_argument,
    make_graph_input_ref,
    make_literal,
    make_task_output_ref,
)
from .config import EditorConfig
from .errors import EditError, EditResult, InvalidArgumentError, MissingSpec, StructuralViolation
from .ids import make_unique_name
from .models import (
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

__all__ = [
    "ORIGIN",
    "POSITION_ANNOTATION",
    "STATUS_ANNOTATION",
    "Position",
    "decode_position",
    "encode_position",
    "set_position",
    "ArgumentKind",
    "ArgumentValue",
    "GraphInputArgument",
    "LiteralArgument",
    "TaskOutputArgument",
    "argument_kind",
    "argument_to_dict",
    "classify_argument",
    "make_graph_input_ref",
    "make_literal",
    "make_task_output_ref",
    "EditorConfig",
    "EditError",
    "EditResult",
    "InvalidArgumentError",
    "MissingSpec",
    "StructuralViolation",
    "make_unique_name",
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
]
