from __future__ import annotations
from importlib.resources import files
from pathlib import Path
from typing import Any, Dict, Tuple
import json

import yaml
from pydantic import ValidationError

from .ir import LayoutConfig, RenderGraph, TopologyDescriptor

TEMPLATES = ("demo", "chain")


class InputFileError(ValueError):
    """A topology, metrics or config file could not be read or parsed."""


def _read_document(path: Path) -> Any:
    # YAML is a superset of JSON, so engine dumps load through the same path
    try:
        text = Path(path).read_text()
    except OSError as e:
        raise InputFileError(f"Cannot read '{path}': {e}") from e
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise InputFileError(f"Cannot parse '{path}': {e}") from e


def load_topology(path: Path) -> TopologyDescriptor:
    data = _read_document(path)
    if data is not None and not isinstance(data, dict):
        raise InputFileError(f"'{path}' does not hold a topology mapping.")
    return TopologyDescriptor.from_payload(data or {})


def load_metrics(path: Path) -> Dict[str, Any]:
    data = _read_document(path)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InputFileError(f"'{path}' does not hold a metrics mapping.")
    return data


def load_layout_config(path: Path, **overrides: Any) -> LayoutConfig:
    data = _read_document(path) or {}
    if not isinstance(data, dict):
        raise InputFileError(f"'{path}' does not hold a layout config mapping.")
    data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return LayoutConfig(**data)
    except ValidationError as e:
        raise InputFileError(f"Invalid layout config in '{path}': {e}") from e


def _load_template_yaml(name: str) -> str:
    pkg = files('flowtopo.templates')
    return (pkg / f"{name}.yaml").read_text()


def load_sample(name: str) -> Tuple[TopologyDescriptor, Dict[str, Any]]:
    name = name.lower()
    if name not in TEMPLATES:
        raise ValueError(f"Unknown sample '{name}'. Use one of: {', '.join(TEMPLATES)}")
    topology = yaml.safe_load(_load_template_yaml(f"{name}.topology"))
    metrics = yaml.safe_load(_load_template_yaml(f"{name}.metrics"))
    return TopologyDescriptor.from_payload(topology), metrics


def save_sample(name: str, outdir: Path) -> Tuple[Path, Path]:
    name = name.lower()
    topology, metrics = load_sample(name)
    outdir.mkdir(exist_ok=True, parents=True)
    topo_file = outdir / f"{name}.topology.yaml"
    metrics_file = outdir / f"{name}.metrics.yaml"
    topo_file.write_text(yaml.safe_dump(topology.model_dump(), sort_keys=False))
    metrics_file.write_text(yaml.safe_dump(metrics, sort_keys=False))
    return topo_file, metrics_file


def save_render_graph(graph: RenderGraph, path: Path):
    path.write_text(json.dumps(graph.model_dump(mode="json"), indent=2, ensure_ascii=False))
