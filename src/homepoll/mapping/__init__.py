"""Mapping layer.

Pure functions turning vendor payloads into typed channel states. Nothing
in here performs I/O.
"""

__all__: list[str] = []
