"""aiui: manifest-driven action resolution, validation, and tracing."""

__version__ = "0.1.0"
