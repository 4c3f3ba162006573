"""Ensuring the WebAssembly compilation target is installed."""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

_TARGET = "wasm32-wasi"


def get_sysroot() -> Path:
    """Return the sysroot reported by the Rust compiler."""
    output = subprocess.run(
        ["rustc", "--print", "sysroot"], capture_output=True, check=False
    )
    if output.returncode != 0:
        stderr = output.stderr.decode("utf-8", errors="replace")
        raise RuntimeError(
            "failed to execute `rustc --print sysroot`, "
            f"command exited with error: {stderr}"
        )
    return Path(output.stdout.decode("utf-8").strip())


def install_wasm32_wasi() -> None:
    """Install the wasm32-wasi target through rustup if it is missing."""
    sysroot = get_sysroot()
    if (sysroot / "lib" / "rustlib" / _TARGET).exists():
        return

    if os.environ.get("RUSTUP_TOOLCHAIN") is None:
        raise RuntimeError(
            f"failed to find the `{_TARGET}` target "
            "and `rustup` is not available. If you're using rustup "
            "make sure that it's correctly installed; if not, make sure to "
            f"install the `{_TARGET}` target before using this command"
        )

    print(f"{'Installing':>12} {_TARGET} target", file=sys.stderr)

    result = subprocess.run(["rustup", "target", "add", _TARGET], check=False)
    if result.returncode != 0:
        raise RuntimeError(f"failed to install the `{_TARGET}` target")