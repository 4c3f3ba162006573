[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cargo-component"
version = "0.1.0"
description = "Helpers for cargo projects that build WebAssembly components: argument detection, component metadata, lock-file access, starter source generation and build output discovery"
requires-python = ">=3.10"
keywords = ["cargo", "webassembly", "wasm", "component-model", "wit", "build"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]
dependencies = [
    "semver",
    "filelock",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["cargo_component"]

[tool.hatch.build.targets.sdist]
include = ["cargo_component", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
