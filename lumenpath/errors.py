"""
Error types raised by the renderer.

Construction problems are reported before any pixel is traced; numeric
problems found while tracing are recovered locally by the image
accumulator and only surface as exceptions in strict mode.
"""

from __future__ import annotations


class LumenPathError(Exception):
    """Base class for all renderer errors."""
    pass


class SceneConstructionError(LumenPathError):
    """Invalid geometry, material or camera parameters."""
    pass


class NumericAnomaly(LumenPathError):
    """A ray or radiance computation produced a non-finite value."""

    def __init__(self, message: str, pixel: tuple[int, int] | None = None):
        super().__init__(message)
        self.pixel = pixel


class ResourceExhaustion(LumenPathError):
    """Not enough memory to build the BVH or allocate the image."""
    pass


class OutputError(LumenPathError):
    """The image encoder or writer failed."""
    pass
