"""Helpers for cargo projects that build WebAssembly components."""

__version__ = "0.1.0"