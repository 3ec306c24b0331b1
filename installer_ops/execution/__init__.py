# installer_ops/execution/__init__.py
"""
Reversible file-system operations.

Importing this package registers the built-in operations with the default
operation registry.
"""
# Export key components that other modules need
from .operation import Operation, OperationError
from .copy_directory import CopyDirectoryOperation
from .create_shortcut import CreateShortcutOperation
from .filesystem import (
    FileSystemError, delete_file_now_or_later, create_link,
    is_system_generated_file, remove_system_generated_files
)

__all__ = [
    'Operation', 'OperationError',
    'CopyDirectoryOperation', 'CreateShortcutOperation',
    'FileSystemError', 'delete_file_now_or_later', 'create_link',
    'is_system_generated_file', 'remove_system_generated_files'
]
