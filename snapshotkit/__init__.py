"""Snapshot model, message conversion, an async service layer and shim helpers for container snapshotters."""

__version__ = "0.3.0"