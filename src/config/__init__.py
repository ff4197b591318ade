"""Benchmark manifest configuration package."""

from .manifest_loader import ManifestError, ManifestLoader, parse_manifest

__all__ = ["ManifestError", "ManifestLoader", "parse_manifest"]
