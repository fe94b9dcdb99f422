"""Tests for the workspace-aware configuration loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from sitedeploy import configuration


def _prepare_repo_defaults(tmp_path: Path, content: str = "deploy:\n  bucket: repo-bucket\n") -> Path:
    config_dir = tmp_path / "repo-config"
    config_dir.mkdir()
    (config_dir / "00-defaults.yml").write_text(content, encoding="utf-8")
    return config_dir


def _write_override(workdir: Path, content: str, name: str = "local.yml") -> None:
    cfg_dir = workdir / "config"
    cfg_dir.mkdir(parents=True, exist_ok=True)
    (cfg_dir / name).write_text(content, encoding="utf-8")


def test_resolve_workdir_uses_env_expansion(tmp_path: Path):
    env = {"SITEDEPLOY_WORKDIR": str(tmp_path / "work")}

    assert configuration.resolve_workdir(env=env) == tmp_path / "work"
    assert configuration.resolve_workdir(env={}) == Path(".")


def test_load_runtime_configuration_merges_repo_and_workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    repo_dir = _prepare_repo_defaults(tmp_path)
    workdir = tmp_path / "work"
    _write_override(workdir, "deploy:\n  site_dir: public\n")
    monkeypatch.setattr(configuration, "DEFAULT_CONFIG_DIR", repo_dir)

    bundle = configuration.load_runtime_configuration(workdir)

    assert bundle.status == "ready"
    assert bundle.merged["deploy"]["bucket"] == "repo-bucket"
    assert bundle.merged["deploy"]["site_dir"] == "public"
    assert len(bundle.files_loaded) == 2


def test_schema_defaults_fill_missing_sections(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(configuration, "DEFAULT_CONFIG_DIR", tmp_path / "absent")
    workdir = tmp_path / "work"
    workdir.mkdir()

    bundle = configuration.load_runtime_configuration(workdir)

    assert bundle.status == "ready"
    assert bundle.merged["deploy"]["manifest_dir"] == ".metadata"
    assert bundle.merged["deploy"]["manifest_name"] == "checksums.txt"
    assert bundle.merged["deploy"]["hasher"] == "shell"
    assert bundle.merged["aws"]["binary"] == "aws"
    assert bundle.merged["logging"]["level"] == "INFO"
    assert all(diag.level == "info" for diag in bundle.diagnostics)


def test_load_runtime_configuration_reports_missing_workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(configuration, "DEFAULT_CONFIG_DIR", _prepare_repo_defaults(tmp_path))

    bundle = configuration.load_runtime_configuration(tmp_path / "missing")

    assert bundle.status == "missing"
    assert any(diag.level == "error" for diag in bundle.diagnostics)


def test_load_runtime_configuration_handles_bad_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(configuration, "DEFAULT_CONFIG_DIR", _prepare_repo_defaults(tmp_path))
    workdir = tmp_path / "work"
    _write_override(workdir, "deploy: [\n", name="broken.yml")

    bundle = configuration.load_runtime_configuration(workdir)

    assert bundle.status == "invalid"
    assert any("Failed to parse" in diag.message for diag in bundle.diagnostics)


def test_invalid_types_raise_diagnostics(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(configuration, "DEFAULT_CONFIG_DIR", tmp_path / "absent")
    workdir = tmp_path / "work"
    _write_override(workdir, "logging:\n  structured: 'yes'\n")

    bundle = configuration.load_runtime_configuration(workdir)

    assert bundle.status == "invalid"
    assert any("structured" in diag.message for diag in bundle.diagnostics)
    assert bundle.merged["logging"]["structured"] is True


def test_hasher_must_be_a_known_choice(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(configuration, "DEFAULT_CONFIG_DIR", tmp_path / "absent")
    workdir = tmp_path / "work"
    _write_override(workdir, "deploy:\n  hasher: md5\n")

    bundle = configuration.load_runtime_configuration(workdir)

    assert bundle.status == "invalid"
    assert any("deploy.hasher" in diag.message for diag in bundle.diagnostics)
    assert bundle.merged["deploy"]["hasher"] == "shell"


def test_exclude_paths_drops_non_strings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(configuration, "DEFAULT_CONFIG_DIR", tmp_path / "absent")
    workdir = tmp_path / "work"
    _write_override(workdir, "deploy:\n  exclude_paths: [drafts, 3]\n")

    bundle = configuration.load_runtime_configuration(workdir)

    assert bundle.merged["deploy"]["exclude_paths"] == ["drafts"]
    assert bundle.status == "invalid"


def test_unknown_keys_warn(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(configuration, "DEFAULT_CONFIG_DIR", tmp_path / "absent")
    workdir = tmp_path / "work"
    _write_override(workdir, "mystery:\n  value: 1\n")

    bundle = configuration.load_runtime_configuration(workdir)

    assert bundle.status == "ready"
    assert any("Unknown configuration key" in diag.message for diag in bundle.diagnostics)


def test_packaged_defaults_file_passes_validation(tmp_path: Path):
    bundle = configuration.load_runtime_configuration(tmp_path)

    assert configuration.DEFAULT_CONFIG_DIR.parent == Path(configuration.__file__).resolve().parent
    assert configuration.DEFAULT_CONFIG_DIR / "00-defaults.yml" in bundle.files_loaded
    assert not [diag for diag in bundle.diagnostics if diag.level == "error"]
    assert bundle.repo_defaults["deploy"]["manifest_acl"] == "private"


def test_partial_section_keeps_values_and_fills_the_rest(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(configuration, "DEFAULT_CONFIG_DIR", tmp_path / "absent")
    workdir = tmp_path / "work"
    _write_override(workdir, "deploy:\n  bucket: b\naws: null\n")

    bundle = configuration.load_runtime_configuration(workdir)

    assert bundle.merged["deploy"]["bucket"] == "b"
    assert bundle.merged["deploy"]["exclude_paths"] == []
    assert bundle.merged["aws"] == {"binary": "aws", "profile": "", "region": ""}
    assert any("'config.aws' must be a mapping" in diag.message for diag in bundle.diagnostics)
