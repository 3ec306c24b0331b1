# installer_ops/__init__.py
"""
installer-ops: reversible file-system operations for component-based installers.
"""
from pathlib import Path
from typing import Optional, Union

__version__ = '0.1.0'

# Import key objects needed at the top level
from installer_ops.core.registry import registry
from installer_ops.execution import (
    Operation, OperationError, CopyDirectoryOperation, CreateShortcutOperation
)


def init_application(config_path: Optional[Union[str, Path]] = None,
                     debug: Optional[bool] = None,
                     log_dir: Optional[Union[str, Path]] = None) -> None:
    """
    Initialize configuration, logging and the operation registry.

    Args:
        config_path: TOML file to load instead of the default location.
        debug: Overrides the configured debug flag when given.
        log_dir: Directory for log files instead of the default location.
    """
    from installer_ops.config import config_manager
    from installer_ops.utils.logging import setup_logging, get_logger

    config = config_manager.load_config(config_path)
    setup_logging(debug=config.debug if debug is None else debug, log_dir=log_dir)

    # Registered on import already; a cleared registry is repopulated here
    for operation_type in (CopyDirectoryOperation, CreateShortcutOperation):
        prototype = operation_type()
        if not registry.contains(prototype.name):
            registry.register(prototype)

    logger = get_logger(__name__)
    logger.info(f"Application initialization completed, operations: {', '.join(registry.list_operations())}")


__all__ = [
    'init_application', 'registry',
    'Operation', 'OperationError', 'CopyDirectoryOperation', 'CreateShortcutOperation'
]
