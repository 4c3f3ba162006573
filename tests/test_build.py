import subprocess
from pathlib import Path
from unittest import mock

import pytest
import semver

from cargo_component.build import (
    cargo_command_args,
    find_module_output,
    is_build_command,
    output_directories,
    run_cargo_command,
)
from cargo_component.config import CargoArguments
from cargo_component.metadata import ComponentMetadata, ComponentSection
from cargo_component.workspace import PackageComponentMetadata, WorkspaceError

MODULE_BYTES = b"\0asm\x01\x00\x00\x00"


@pytest.mark.parametrize(
    "subcommand,expected",
    [("b", True), ("build", True), ("rustc", True), ("check", False), (None, False)],
)
def test_is_build_command(subcommand, expected):
    assert is_build_command(subcommand) is expected


def test_args_drop_component_and_add_default_target():
    args = cargo_command_args(["component", "build", "--release"], "build", [])
    assert args == ["build", "--release", "--target", "wasm32-wasi"]


def test_args_keep_explicit_wasm_target():
    spawn = ["build", "--target", "wasm32-unknown-unknown"]
    assert cargo_command_args(spawn, "build", ["wasm32-unknown-unknown"]) == spawn


def test_args_non_build_unchanged():
    assert cargo_command_args(["component", "check"], "check", []) == ["check"]


def test_output_directories_default(tmp_path):
    dirs = output_directories(tmp_path, [], release=False)
    assert dirs == [tmp_path / "wasm32-wasi" / "debug"]


def test_output_directories_filters_non_wasm(tmp_path):
    targets = ["x86_64-unknown-linux-gnu", "wasm32-unknown-unknown"]
    dirs = output_directories(tmp_path, targets, release=True)
    assert dirs == [tmp_path / "wasm32-unknown-unknown" / "release"]


def test_output_directories_only_native_target_is_empty(tmp_path):
    assert output_directories(tmp_path, ["x86_64-unknown-linux-gnu"], True) == []


def test_find_module_output_prefers_exact_name(tmp_path):
    (tmp_path / "my-comp.wasm").write_bytes(MODULE_BYTES)
    (tmp_path / "my_comp.wasm").write_bytes(MODULE_BYTES)
    assert find_module_output(tmp_path, "my-comp") == tmp_path / "my-comp.wasm"


def test_find_module_output_underscore_fallback(tmp_path):
    (tmp_path / "my_comp.wasm").write_bytes(MODULE_BYTES)
    assert find_module_output(tmp_path, "my-comp") == tmp_path / "my_comp.wasm"


def test_find_module_output_missing(tmp_path):
    assert find_module_output(tmp_path, "absent") is None


def _component(tmp_path, name):
    return ComponentMetadata(
        name=name,
        version=semver.Version.parse("0.1.0"),
        manifest_path=tmp_path / name / "Cargo.toml",
        modified_at=0.0,
        section=ComponentSection(),
    )


def test_run_non_build_returns_no_outputs(tmp_path, monkeypatch):
    monkeypatch.setenv("CARGO", "cargo")
    done = subprocess.CompletedProcess(["cargo"], 0)
    with mock.patch("subprocess.run", return_value=done) as run:
        outputs = run_cargo_command(
            {"target_directory": str(tmp_path)},
            [],
            "check",
            CargoArguments(),
            ["component", "check"],
        )
    assert outputs == []
    assert run.call_args.args[0] == ["cargo", "check"]


def test_run_exits_with_cargo_status(tmp_path, monkeypatch):
    monkeypatch.setenv("CARGO", "cargo")
    failed = subprocess.CompletedProcess(["cargo"], 3)
    with mock.patch("subprocess.run", return_value=failed):
        with pytest.raises(SystemExit) as info:
            run_cargo_command(
                {"target_directory": str(tmp_path)}, [], "check", CargoArguments(), ["check"]
            )
    assert info.value.code == 3


def test_run_spawn_failure(tmp_path, monkeypatch):
    monkeypatch.setenv("CARGO", "cargo")
    with mock.patch("subprocess.run", side_effect=FileNotFoundError("missing")):
        with pytest.raises(WorkspaceError, match="failed to spawn `cargo`"):
            run_cargo_command(
                {"target_directory": str(tmp_path)}, [], "check", CargoArguments(), ["check"]
            )


def test_run_build_collects_outputs(tmp_path, monkeypatch):
    monkeypatch.setenv("CARGO", "cargo")
    sysroot = tmp_path / "sysroot"
    (sysroot / "lib" / "rustlib" / "wasm32-wasi").mkdir(parents=True)
    target_dir = tmp_path / "target"
    out_dir = target_dir / "wasm32-wasi" / "debug"
    out_dir.mkdir(parents=True)
    (out_dir / "my_comp.wasm").write_bytes(MODULE_BYTES)
    (out_dir / "plain.wasm").write_bytes(MODULE_BYTES)

    calls = []

    def fake_run(cmd, *args, **kwargs):
        calls.append(cmd)
        if cmd[0] == "rustc":
            return subprocess.CompletedProcess(cmd, 0, stdout=str(sysroot).encode(), stderr=b"")
        return subprocess.CompletedProcess(cmd, 0)

    packages = [
        PackageComponentMetadata({"name": "my-comp"}, _component(tmp_path, "my-comp")),
        PackageComponentMetadata({"name": "plain"}, None),
    ]
    with mock.patch("subprocess.run", side_effect=fake_run):
        outputs = run_cargo_command(
            {"target_directory": str(target_dir)},
            packages,
            "build",
            CargoArguments(),
            ["component", "build"],
        )

    assert outputs == [out_dir / "my_comp.wasm"]
    assert ["cargo", "build", "--target", "wasm32-wasi"] in calls