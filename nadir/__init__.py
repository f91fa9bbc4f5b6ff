"""Single-switch screen scanner that positions and clicks the pointer."""

__version__ = "0.1.0"