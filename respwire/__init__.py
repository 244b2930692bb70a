"""Redis protocol parsing, pipelines, scripts, and geo and stream reply types."""

__version__ = "0.1.0"
__all__ = ["geo", "parser", "pipeline", "script", "streams", "types"]