# installer_ops/utils/__init__.py
"""
Utility functions for the installer operations.

This package provides the logging setup shared by every operation.
"""

from .logging import setup_logging, get_logger

# EnhancedLogger is available but not exported by default
# Import directly from enhanced_logging when needed

__all__ = ['setup_logging', 'get_logger']
