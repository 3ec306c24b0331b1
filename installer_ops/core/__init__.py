# installer_ops/core/__init__.py
"""
Core infrastructure for the installer operations.

This module provides the operation registry and the progress event bus.
"""
from installer_ops.core.registry import registry, register_operation, OperationRegistry
from installer_ops.core.events import EventBus

__all__ = ['registry', 'register_operation', 'OperationRegistry', 'EventBus']
