from .logging import configure_logging, get_logger
from .pipeline import TelemetryConfig, TelemetryRouter

__all__ = ["configure_logging", "get_logger", "TelemetryConfig", "TelemetryRouter"]
