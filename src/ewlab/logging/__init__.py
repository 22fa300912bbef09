from .logger import LogConfig, get_logger, setup_logging

__all__ = ["LogConfig", "get_logger", "setup_logging"]
