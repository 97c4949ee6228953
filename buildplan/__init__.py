"""buildplan — build configuration resolver."""

__version__ = "0.1.0"
