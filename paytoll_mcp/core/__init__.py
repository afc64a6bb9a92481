"""
Core utilities and configuration for the PayToll MCP bridge.

This package provides settings, logging configuration and wallet secret
resolution shared by the rest of the bridge.
"""

from paytoll_mcp.core.logging_config import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
