"""Layered YAML configuration for sitedeploy.

Packaged defaults (``sitedeploy/defaults/*.yml``) are merged with the
workspace's ``config/*.yml`` files in file-name order, then checked against
``CONFIG_SCHEMA``. The schema fills every missing key, so commands can index
``merged["deploy"]["manifest_dir"]`` without guarding. Problems never raise:
they become ``Diagnostic`` entries and move the bundle's status to
``invalid`` (or ``missing`` when the workspace itself is absent).
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, MutableMapping, Optional

import yaml

DEFAULT_CONFIG_DIR = Path(__file__).resolve().parent / "defaults"
WORKDIR_ENV = "SITEDEPLOY_WORKDIR"

DiagnosticLevel = Literal["info", "warning", "error"]
ConfigurationStatus = Literal["ready", "missing", "invalid"]

SchemaSpec = Dict[str, Any]

HASHER_CHOICES = ("shell", "python")


def _section(**fields: SchemaSpec) -> SchemaSpec:
    return {"type": dict, "schema": fields, "default": {}}


CONFIG_SCHEMA: SchemaSpec = {
    "logging": _section(
        level={"type": str, "default": "INFO"},
        structured={"type": bool, "default": True},
        stdout={"type": bool, "default": True},
        file={"type": str, "default": "logs/sitedeploy.log"},
    ),
    "deploy": _section(
        site_dir={"type": str, "default": ""},
        bucket={"type": str, "default": ""},
        manifest_dir={"type": str, "default": ".metadata"},
        manifest_name={"type": str, "default": "checksums.txt"},
        manifest_acl={"type": str, "default": "private"},
        homepage={"type": str, "default": "./index.html"},
        exclude_paths={"type": list, "item_type": str, "default_factory": list},
        staging_root={"type": str, "default": ""},
        hasher={"type": str, "default": "shell", "choices": HASHER_CHOICES},
    ),
    "aws": _section(
        binary={"type": str, "default": "aws"},
        profile={"type": str, "default": ""},
        region={"type": str, "default": ""},
    ),
}


@dataclass
class Diagnostic:
    """One loading or validation finding."""

    level: DiagnosticLevel
    message: str
    source: Optional[Path] = None


@dataclass
class ConfigurationBundle:
    """Merged settings for one run, plus where they came from."""

    workdir: Path
    status: ConfigurationStatus
    merged: Dict[str, Any] = field(default_factory=dict)
    repo_defaults: Dict[str, Any] = field(default_factory=dict)
    files_loaded: List[Path] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    log_path: Optional[Path] = None


def resolve_workdir(env: Optional[Mapping[str, str]] = None, default: str = ".") -> Path:
    source = env if env is not None else os.environ
    return Path(source.get(WORKDIR_ENV, default)).expanduser()


def load_runtime_configuration(workdir: Optional[Path] = None) -> ConfigurationBundle:
    """Merge packaged defaults with the workspace's ``config/`` overrides."""
    workdir = workdir or resolve_workdir()
    diagnostics: List[Diagnostic] = []
    files_loaded: List[Path] = []

    repo_defaults = _read_yaml_dir(DEFAULT_CONFIG_DIR, "packaged defaults", diagnostics, files_loaded)
    merged = deepcopy(repo_defaults)

    status: ConfigurationStatus = "ready"
    if not workdir.is_dir():
        problem = "does not exist" if not workdir.exists() else "is not a directory"
        diagnostics.append(Diagnostic(level="error", message=f"Workspace '{workdir}' {problem}."))
        status = "missing" if not workdir.exists() else "invalid"
    else:
        overrides = _read_yaml_dir(workdir / "config", "workspace overrides", diagnostics, files_loaded)
        _deep_merge_dicts(merged, overrides)

    _apply_schema(merged, CONFIG_SCHEMA, "config", diagnostics)

    if status == "ready" and any(diag.level == "error" for diag in diagnostics):
        status = "invalid"

    return ConfigurationBundle(
        workdir=workdir,
        status=status,
        merged=merged,
        repo_defaults=repo_defaults,
        files_loaded=files_loaded,
        diagnostics=diagnostics,
    )


def _read_yaml_dir(
    directory: Path,
    label: str,
    diagnostics: List[Diagnostic],
    files_loaded: List[Path],
) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    if not directory.is_dir():
        level: DiagnosticLevel = "error" if directory.exists() else "info"
        diagnostics.append(
            Diagnostic(level=level, message=f"No configuration directory at '{directory}' ({label}).", source=directory)
        )
        return data

    for yaml_file in sorted(directory.glob("*.yml")) + sorted(directory.glob("*.yaml")):
        try:
            content = yaml.safe_load(yaml_file.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            diagnostics.append(Diagnostic(level="error", message=f"Failed to parse '{yaml_file}': {exc}", source=yaml_file))
            continue
        if content is not None and not isinstance(content, MutableMapping):
            diagnostics.append(
                Diagnostic(level="warning", message=f"Ignoring '{yaml_file}': not a mapping.", source=yaml_file)
            )
            continue
        _deep_merge_dicts(data, content or {})
        files_loaded.append(yaml_file)
    return data


def _deep_merge_dicts(dest: MutableMapping[str, Any], source: Mapping[str, Any]) -> None:
    for key, value in source.items():
        if isinstance(dest.get(key), MutableMapping) and isinstance(value, Mapping):
            _deep_merge_dicts(dest[key], value)
        else:
            dest[key] = deepcopy(value)


def _default_from_spec(spec: SchemaSpec) -> Any:
    if callable(spec.get("default_factory")):
        return spec["default_factory"]()
    return deepcopy(spec.get("default"))


def _apply_schema(target: Dict[str, Any], schema: SchemaSpec, path: str, diagnostics: List[Diagnostic]) -> None:
    """Fill defaults and replace invalid values in place, recording each problem."""
    for key in target:
        if key not in schema:
            diagnostics.append(Diagnostic(level="warning", message=f"Unknown configuration key '{path}.{key}'."))

    for key, spec in schema.items():
        child_path = f"{path}.{key}"
        if key in target:
            target[key] = _checked_value(target[key], spec, child_path, diagnostics)
        else:
            target[key] = _default_from_spec(spec)
        if spec.get("type") is dict:
            _apply_schema(target[key], spec.get("schema", {}), child_path, diagnostics)


def _checked_value(value: Any, spec: SchemaSpec, path: str, diagnostics: List[Diagnostic]) -> Any:
    expected = spec.get("type")
    if expected is not None and not isinstance(value, expected):
        kind = {dict: "a mapping", list: "a list"}.get(expected, f"of type {expected.__name__}")
        diagnostics.append(Diagnostic(level="error", message=f"'{path}' must be {kind}."))
        return _default_from_spec(spec)

    item_type = spec.get("item_type")
    if item_type is not None:
        kept = []
        for idx, item in enumerate(value):
            if isinstance(item, item_type):
                kept.append(item)
            else:
                diagnostics.append(
                    Diagnostic(level="error", message=f"'{path}[{idx}]' must be of type {item_type.__name__}.")
                )
        return kept

    choices = spec.get("choices")
    if choices and value not in choices:
        diagnostics.append(
            Diagnostic(level="error", message=f"'{path}' must be one of {', '.join(choices)} (got '{value}').")
        )
        return _default_from_spec(spec)
    return value


__all__ = [
    "CONFIG_SCHEMA",
    "ConfigurationBundle",
    "ConfigurationStatus",
    "DEFAULT_CONFIG_DIR",
    "Diagnostic",
    "WORKDIR_ENV",
    "load_runtime_configuration",
    "resolve_workdir",
]
