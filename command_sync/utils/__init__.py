"""
Utilities package initialization.
"""
from .logger import get_logger, log_business_event, setup_logging

__all__ = ["get_logger", "log_business_event", "setup_logging"]
