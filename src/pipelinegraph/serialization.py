"""pipelinegraph.serialization

ComponentSpec <-> plain dict (wire format) <-> YAML text.

The wire format is the component-spec document used by pipeline files:

```yaml
name: My pipeline
metadata:
  annotations:
    sdk: https://cloud-pipelines.net/pipeline-editor/
inputs:
  - {name: initialData, type: String}
outputs:
  - {name: finalResult}
implementation:
  graph:
    tasks:
      Train:
        componentRef: {name: Train, url: https://...}
        arguments:
          data: {graphInput: {inputName: initialData}}
        annotations: {editor.position: '{"x":10,"y":20}'}
    outputValues:
      finalResult: {taskOutput: {taskId: Train, outputName: model}}
```

Parsing is permissive about optional fields and strict about structure: an
implementation must carry exactly one of `graph` / `container`. Keys the model
does not name (extra `metadata` entries, vendor fields on ports, tasks and the
component) are kept in `extra` dicts and written back on dump.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import yaml

from .core.arguments import TaskOutputArgument, argument_to_dict, classify_argument
from .core.models import (
    ComponentReference,
    ComponentSpec,
    ContainerImplementation,
    GraphImplementation,
    GraphSpec,
    InputSpec,
    OutputSpec,
    TaskSpec,
)

PIPELINE_EDITOR_SDK = "https://cloud-pipelines.net/pipeline-editor/"
SDK_ANNOTATION = "sdk"


class SerializationError(ValueError):
    """The document does not have the shape of a component spec."""


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _dict_or_empty(raw: Any, where: str) -> Dict[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise SerializationError(f"{where} must be a mapping")
    return dict(raw)


def _list_or_empty(raw: Any, where: str) -> List[Any]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise SerializationError(f"{where} must be a list")
    return list(raw)


def _extra(raw: Dict[str, Any], known: Tuple[str, ...]) -> Dict[str, Any]:
    return {str(k): v for k, v in raw.items() if k not in known}


def _with_extra(out: Dict[str, Any], extra: Dict[str, Any]) -> Dict[str, Any]:
    for k, v in extra.items():
        out.setdefault(k, v)
    return out


_INPUT_KEYS = ("name", "type", "description", "default", "optional", "annotations")
_OUTPUT_KEYS = ("name", "type", "description", "annotations")
_TASK_KEYS = ("componentRef", "arguments", "annotations", "isEnabled", "executionOptions")
_COMPONENT_KEYS = ("name", "description", "metadata", "inputs", "outputs", "implementation")


def _port_name(raw: Any, where: str) -> str:
    if not isinstance(raw, dict):
        raise SerializationError(f"{where} entries must be mappings")
    name = _opt_str(raw.get("name"))
    if name is None:
        raise SerializationError(f"{where} entry is missing 'name'")
    return name


def input_spec_from_dict(raw: Any) -> InputSpec:
    name = _port_name(raw, "inputs")
    default = raw.get("default")
    return InputSpec(
        name=name,
        type=raw.get("type"),
        description=_opt_str(raw.get("description")),
        default=None if default is None else str(default),
        optional=bool(raw.get("optional", False)),
        annotations=_dict_or_empty(raw.get("annotations"), f"inputs[{name}].annotations"),
        extra=_extra(raw, _INPUT_KEYS),
    )


def output_spec_from_dict(raw: Any) -> OutputSpec:
    name = _port_name(raw, "outputs")
    return OutputSpec(
        name=name,
        type=raw.get("type"),
        description=_opt_str(raw.get("description")),
        annotations=_dict_or_empty(raw.get("annotations"), f"outputs[{name}].annotations"),
        extra=_extra(raw, _OUTPUT_KEYS),
    )


def input_spec_to_dict(inp: InputSpec) -> Dict[str, Any]:
    out: Dict[str, Any] = {"name": inp.name}
    if inp.type is not None:
        out["type"] = inp.type
    if inp.description:
        out["description"] = inp.description
    if inp.default is not None:
        out["default"] = inp.default
    if inp.optional:
        out["optional"] = True
    if inp.annotations:
        out["annotations"] = dict(inp.annotations)
    return _with_extra(out, inp.extra)


def output_spec_to_dict(out_spec: OutputSpec) -> Dict[str, Any]:
    out: Dict[str, Any] = {"name": out_spec.name}
    if out_spec.type is not None:
        out["type"] = out_spec.type
    if out_spec.description:
        out["description"] = out_spec.description
    if out_spec.annotations:
        out["annotations"] = dict(out_spec.annotations)
    return _with_extra(out, out_spec.extra)


def component_ref_from_dict(raw: Any) -> ComponentReference:
    if raw is None:
        return ComponentReference()
    if not isinstance(raw, dict):
        raise SerializationError("componentRef must be a mapping")
    nested = raw.get("spec")
    return ComponentReference(
        name=_opt_str(raw.get("name")),
        digest=_opt_str(raw.get("digest")),
        tag=_opt_str(raw.get("tag")),
        url=_opt_str(raw.get("url")),
        spec=component_spec_from_dict(nested) if nested is not None else None,
        text=raw.get("text") if isinstance(raw.get("text"), str) else None,
    )


def component_ref_to_dict(ref: ComponentReference) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key in ("name", "digest", "tag", "url"):
        value = getattr(ref, key)
        if value is not None:
            out[key] = value
    if ref.spec is not None:
        out["spec"] = component_spec_to_dict(ref.spec)
    if ref.text is not None:
        out["text"] = ref.text
    return out


def task_spec_from_dict(raw: Any, task_id: str = "") -> TaskSpec:
    if not isinstance(raw, dict):
        raise SerializationError(f"Task '{task_id}' must be a mapping")
    if "componentRef" not in raw:
        raise SerializationError(f"Task '{task_id}' is missing 'componentRef'")
    arguments_raw = _dict_or_empty(raw.get("arguments"), f"tasks[{task_id}].arguments")
    is_enabled = raw.get("isEnabled")
    execution_options = raw.get("executionOptions")
    return TaskSpec(
        component_ref=component_ref_from_dict(raw.get("componentRef")),
        # InvalidArgumentError propagates: an argument object of unknown shape is a format error.
        arguments={str(k): classify_argument(v) for k, v in arguments_raw.items()},
        annotations=_dict_or_empty(raw.get("annotations"), f"tasks[{task_id}].annotations"),
        is_enabled=dict(is_enabled) if isinstance(is_enabled, dict) else None,
        execution_options=dict(execution_options) if isinstance(execution_options, dict) else None,
        extra=_extra(raw, _TASK_KEYS),
    )


def task_spec_to_dict(task: TaskSpec) -> Dict[str, Any]:
    out: Dict[str, Any] = {"componentRef": component_ref_to_dict(task.component_ref)}
    if task.arguments:
        out["arguments"] = {k: argument_to_dict(v) for k, v in task.arguments.items()}
    if task.annotations:
        out["annotations"] = dict(task.annotations)
    if task.is_enabled is not None:
        out["isEnabled"] = dict(task.is_enabled)
    if task.execution_options is not None:
        out["executionOptions"] = dict(task.execution_options)
    return _with_extra(out, task.extra)


def _graph_from_dict(raw: Any) -> GraphSpec:
    body = _dict_or_empty(raw, "implementation.graph")
    tasks_raw = _dict_or_empty(body.get("tasks"), "implementation.graph.tasks")
    tasks = {str(tid): task_spec_from_dict(t, str(tid)) for tid, t in tasks_raw.items()}

    output_values: Dict[str, TaskOutputArgument] = {}
    for name, value in _dict_or_empty(body.get("outputValues"), "implementation.graph.outputValues").items():
        argument = classify_argument(value)
        if not isinstance(argument, TaskOutputArgument):
            raise SerializationError(f"outputValues['{name}'] must be a taskOutput reference")
        output_values[str(name)] = argument
    return GraphSpec(tasks=tasks, output_values=output_values)


def _implementation_from_dict(raw: Any):
    impl = _dict_or_empty(raw, "implementation")
    has_graph = "graph" in impl
    has_container = "container" in impl
    if has_graph == has_container:
        raise SerializationError("implementation must have exactly one of 'graph' or 'container'")
    if has_graph:
        return GraphImplementation(graph=_graph_from_dict(impl["graph"]))
    return ContainerImplementation(container=_dict_or_empty(impl["container"], "implementation.container"))


def component_spec_from_dict(raw: Any) -> ComponentSpec:
    """Parse a wire-format component spec.

    Raises:
        SerializationError: the mapping does not have the expected structure
        InvalidArgumentError: an argument object is neither a literal nor a reference
    """
    if not isinstance(raw, dict):
        raise SerializationError("Component spec must be a mapping")
    if "implementation" not in raw:
        raise SerializationError("Component spec is missing 'implementation'")
    metadata = _dict_or_empty(raw.get("metadata"), "metadata")
    return ComponentSpec(
        implementation=_implementation_from_dict(raw.get("implementation")),
        name=_opt_str(raw.get("name")),
        description=_opt_str(raw.get("description")),
        inputs=[input_spec_from_dict(i) for i in _list_or_empty(raw.get("inputs"), "inputs")],
        outputs=[output_spec_from_dict(o) for o in _list_or_empty(raw.get("outputs"), "outputs")],
        annotations=_dict_or_empty(metadata.get("annotations"), "metadata.annotations"),
        metadata=_extra(metadata, ("annotations",)),
        extra=_extra(raw, _COMPONENT_KEYS),
    )


def component_spec_to_dict(spec: ComponentSpec) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if spec.name is not None:
        out["name"] = spec.name
    if spec.description:
        out["description"] = spec.description
    metadata = dict(spec.metadata)
    if spec.annotations:
        metadata["annotations"] = dict(spec.annotations)
    if metadata:
        out["metadata"] = metadata
    if spec.inputs:
        out["inputs"] = [input_spec_to_dict(i) for i in spec.inputs]
    if spec.outputs:
        out["outputs"] = [output_spec_to_dict(o) for o in spec.outputs]

    impl = spec.implementation
    if isinstance(impl, GraphImplementation):
        out["implementation"] = {
            "graph": {
                "tasks": {tid: task_spec_to_dict(t) for tid, t in impl.graph.tasks.items()},
                "outputValues": {k: argument_to_dict(v) for k, v in impl.graph.output_values.items()},
            }
        }
    else:
        out["implementation"] = {"container": dict(impl.container)}
    return _with_extra(out, spec.extra)


def load_pipeline_yaml(text: str) -> ComponentSpec:
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise SerializationError(f"Invalid YAML: {e}") from e
    return component_spec_from_dict(raw)


def dump_pipeline_yaml(spec: ComponentSpec) -> str:
    return yaml.safe_dump(component_spec_to_dict(spec), sort_keys=False, allow_unicode=True)


def default_pipeline(name: str = "New pipeline") -> ComponentSpec:
    """The empty pipeline a new editor session starts from."""
    return ComponentSpec(
        implementation=GraphImplementation(graph=GraphSpec()),
        name=name,
        annotations={SDK_ANNOTATION: PIPELINE_EDITOR_SDK},
    )
