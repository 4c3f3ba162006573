# cargo-component

A Python library for cargo projects that build WebAssembly components. It
picks out the part of cargo's command line that matters for components,
reads the `package.metadata.component` table of a manifest, opens the
component lock file under an inter-process lock, generates starter Rust
source for a target world, and runs cargo and finds the `.wasm` files a
build produced.

## Installation

Install the package with your usual Python package installer. The optional
`test` extra pulls in pytest for running the test suite.

## Modules

- `cargo_component.options` — `ArgumentSet` and `Argument`, a tolerant
  option scanner that records known options and passes over unknown ones;
  misuse raises `ArgumentError`.
- `cargo_component.config` — `parse_cargo_arguments`, `CargoArguments`,
  `CargoPackageSpec` / `parse_package_spec`, and `Color` / `parse_color`.
- `cargo_component.requirements` — `VersionReq` and `parse_version_req` for
  cargo-style version requirements such as `^1.2`, `~0.3` or `>=1, <2`.
- `cargo_component.metadata` — parsing of the component table:
  `parse_component_section`, `parse_target` (`PackageTarget`,
  `LocalTarget`), `parse_dependency` (`RegistryPackage`,
  `LocalDependency`), `parse_bindings` / `Bindings`, `Ownership`,
  `parse_package_id`, and `component_metadata_from_package`, which builds a
  `ComponentMetadata` from a `cargo metadata` package entry. Errors are
  raised as `MetadataError`.
- `cargo_component.lock` — `acquire_lock_file_ro` and
  `acquire_lock_file_rw`, returning a `LockFileHandle`.
- `cargo_component.target` — `get_sysroot` and `install_wasm32_wasi`, which
  call `rustc` and `rustup`.
- `cargo_component.naming` — `to_snake_case`, `to_upper_camel_case` and
  `to_rust_ident`.
- `cargo_component.use_trie` — `UseTrie`, which groups type uses into
  coalesced `use` lines.
- `cargo_component.generator` — a small model of WIT worlds (`World`,
  `Interface`, `Function`, `TypeDef`, `Primitive` and the structural types)
  and `SourceGenerator`, which writes an `impl` block with
  `unimplemented!()` bodies for every exported function.
- `cargo_component.workspace` — `load_metadata` (runs `cargo metadata`),
  `load_component_metadata`, `PackageComponentMetadata`, `is_wasm_target`
  and `is_wasm_module`.
- `cargo_component.build` — `run_cargo_command` and its helpers
  `is_build_command`, `cargo_command_args`, `output_directories` and
  `find_module_output`.

## Detecting cargo arguments

Unknown options are passed over rather than rejected, so the same argument
list can be forwarded to cargo unchanged. A leading `component` is skipped
and scanning stops at `--`.

```python
from cargo_component.config import parse_cargo_arguments

args = parse_cargo_arguments(["component", "build", "--workspace", "--offline"])
assert args.workspace
assert not args.network_allowed()
assert args.lock_update_allowed()
```

Package specifiers accept an optional version; URL specifiers raise
`ValueError`:

```python
from cargo_component.config import parse_package_spec

spec = parse_package_spec("package2@1.1.1")
print(spec.name)   # package2
print(str(spec))   # package2@1.1.1
```

## Building your own option set

```python
from cargo_component.options import ArgumentSet

options = ArgumentSet().flag("--release", "r").counting("--verbose", "v")
options.parse("-vv", iter([]))
print(options.get("--verbose").count())  # 2
```

Giving a flag or single-valued option twice, or a value-taking option
without a value, raises `ArgumentError`.

## Generating starter source

```python
from cargo_component.generator import Function, Primitive, SourceGenerator, World

world = World(
    "example",
    exports=[("hello-world", Function("hello-world", results=[Primitive.STRING]))],
)
print(SourceGenerator("my:pkg", [world]).generate())
```

prints

```rust
// Required for component bindings generation
cargo_component_bindings::generate!();

use bindings::Guest;

struct Component;

impl Guest for Component {
    fn hello_world() -> String {
        unimplemented!()
    }
}
```

With `format=True` the source is passed through `rustfmt`. Anonymous
records, variants, flags, enums and resources raise `GeneratorError`.

## Lock files

The lock file lives in the workspace root as `Cargo-component.lock`, guarded
by a `Cargo-component.lock.guard` lock file. `acquire_lock_file_ro` returns
`None` when the lock file does not exist; `acquire_lock_file_rw` creates it
if needed but raises `RuntimeError` when lock updates are not allowed
(`--locked` or `--frozen`). Both handles are context managers that close the
file and release the lock on exit.

## Running a build

`run_cargo_command` runs `$CARGO` (or `cargo`) with the given arguments.
For `build`, `b` and `rustc` it first makes sure the `wasm32-wasi` target is
installed and adds `--target wasm32-wasi` unless a WebAssembly target was
given. If cargo fails, the process exits with cargo's exit code. After a
build it returns the paths of the `.wasm` outputs of packages that have
component metadata.

## What this package does not do

- It has no command-line program of its own; it is used as a library.
- It does not turn core WebAssembly modules into components, embed adapters
  or add producer or registry metadata to the output; `run_cargo_command`
  only locates the built files.
- It does not generate bindings, resolve dependencies against a component
  registry, publish packages, or manage signing keys.
- It does not read or write the contents of the lock file; it only opens
  the file under a lock.
- `SourceGenerator` does not decode WIT packages from files; the world is
  described with the classes in `cargo_component.generator`.