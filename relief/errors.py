"""
Exceptions raised by the relief stages.
"""


class Cancelled(Exception):
    """The caller asked a long-running computation to stop between phases."""


class MeshValidationError(ValueError):
    """Vertex or index buffers cannot be serialized as a triangle mesh."""
