"""
Core utilities and configuration for the capability runtime.

This package provides core functionality including logging configuration
and environment-driven runtime settings.
"""

from capability_runtime.core.logging_config import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
