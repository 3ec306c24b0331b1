# installer_ops/execution/copy_directory.py
"""
CopyDirectory operation.

Copies a directory tree into an existing target directory and remembers every
file and link it created, newest first, under the "files" value. Undoing
removes those entries in stored order, which empties directories bottom-up,
and removes the directories it created ("directories") once they are empty.

Arguments: <source> <target> [forceOverwrite]
"""
import os
from collections import deque
from typing import Deque, Iterator, List

from installer_ops.constants import (
    OP_COPY_DIRECTORY, KEY_FILES, KEY_DIRECTORIES, FORCE_OVERWRITE
)
from installer_ops.core.registry import register_operation
from installer_ops.execution.filesystem import (
    FileSystemError, error_text, is_within, resolve_symlink_target, copy_file,
    create_symlink, delete_file_now_or_later, remove_file, remove_empty_directory,
    prune_empty_parents, missing_directories
)
from installer_ops.execution.operation import Operation, OperationError
from installer_ops.utils.logging import get_logger

logger = get_logger(__name__)

USAGE = "<source> <target> [forceOverwrite]"


def walk_tree(root: str) -> Iterator[os.DirEntry]:
    """
    Yield every entry below root in pre-order.

    Hidden entries are included. Symlinked directories are yielded but not
    descended into. Siblings come in name order.
    """
    with os.scandir(root) as it:
        entries = sorted(it, key=lambda entry: entry.name)
    for entry in entries:
        yield entry
        if entry.is_dir(follow_symlinks=False):
            yield from walk_tree(entry.path)


@register_operation
class CopyDirectoryOperation(Operation):
    """Recursively copy a directory tree, preserving symlinks."""

    def __init__(self, arguments=()):
        super().__init__(OP_COPY_DIRECTORY, arguments)

    def backup(self) -> None:
        # Nothing to save: undo works from the created entries, and
        # overwritten file contents are deliberately not restorable.
        pass

    def _parse_arguments(self):
        if not self.check_argument_count(2, 3, USAGE):
            return None

        source, target = self.arguments[0], self.arguments[1]
        overwrite = False
        if len(self.arguments) > 2:
            if self.arguments[2] != FORCE_OVERWRITE:
                self.set_error(
                    OperationError.INVALID_ARGUMENTS,
                    f"Invalid argument in {self.name}: Third argument needs to be "
                    f"{FORCE_OVERWRITE}, if specified"
                )
                return None
            overwrite = True

        if not os.path.isdir(source) or not os.path.isdir(target):
            self.set_error(
                OperationError.INVALID_ARGUMENTS,
                f"Invalid arguments in {self.name}: Directories are invalid: {source} {target}"
            )
            return None

        source = os.path.normpath(os.path.abspath(source))
        target = os.path.normpath(os.path.abspath(target))
        if is_within(target, source):
            self.set_error(
                OperationError.INVALID_ARGUMENTS,
                f"Invalid arguments in {self.name}: Target {target} lies inside source {source}"
            )
            return None

        return source, target, overwrite

    def perform_operation(self) -> bool:
        """
        Copy the source tree into the target directory.

        Returns:
            True on success. On failure the error is set and the "files" value
            lists exactly the entries created before the failing step.
        """
        self.reset_error()
        parsed = self._parse_arguments()
        if parsed is None:
            return False
        source_root, target_root, overwrite = parsed

        logger.info(f"Copying {source_root} to {target_root}", overwrite=overwrite)
        files: Deque[str] = deque()
        directories: Deque[str] = deque()
        try:
            for entry in walk_tree(source_root):
                relative_path = os.path.relpath(entry.path, source_root)
                destination = os.path.join(target_root, relative_path)

                if entry.is_symlink():
                    if not self._copy_symlink(entry.path, destination, source_root, target_root, overwrite):
                        return False
                    files.appendleft(destination)
                    self.emit_output_text_changed(destination)

                elif entry.is_dir():
                    created = missing_directories(destination)
                    try:
                        os.makedirs(destination, exist_ok=True)
                    except OSError as e:
                        self.set_error(
                            OperationError.INVALID_ARGUMENTS,
                            f"Could not create {destination}: {error_text(e)}"
                        )
                        return False
                    for directory in created:
                        directories.appendleft(directory)

                else:
                    if not self._copy_file(entry.path, destination, overwrite):
                        return False
                    files.appendleft(destination)
                    self.emit_output_text_changed(destination)

            logger.info(f"Copied {len(files)} entries to {target_root}")
            return True

        except OSError as e:
            # Reading the source tree itself failed
            self.set_error(
                OperationError.USER_DEFINED_ERROR,
                f"Could not read {e.filename or source_root}: {error_text(e)}"
            )
            return False

        finally:
            # Partial progress must be recorded too, so undo can clean it up
            self.set_value(KEY_FILES, list(files))
            self.set_value(KEY_DIRECTORIES, list(directories))

    def _copy_symlink(self, link: str, destination: str, source_root: str,
                      target_root: str, overwrite: bool) -> bool:
        try:
            link_target = resolve_symlink_target(link)
        except OSError as e:
            self.set_error(OperationError.USER_DEFINED_ERROR, f"Could not read link {link}: {error_text(e)}")
            return False

        if is_within(link_target, source_root):
            # Re-root links into the tree so they keep pointing inside the copy
            new_target = os.path.normpath(
                os.path.join(target_root, os.path.relpath(link_target, source_root))
            )
        else:
            new_target = link_target

        if overwrite and not self._delete_existing(destination):
            return False

        try:
            create_symlink(new_target, destination)
        except FileSystemError as e:
            self.set_error(OperationError.USER_DEFINED_ERROR, str(e))
            return False
        return True

    def _copy_file(self, source: str, destination: str, overwrite: bool) -> bool:
        # Without forceOverwrite an existing destination makes copy_file fail
        if overwrite and not self._delete_existing(destination):
            return False

        try:
            copy_file(source, destination)
        except FileSystemError as e:
            self.set_error(OperationError.USER_DEFINED_ERROR, str(e))
            return False
        return True

    def _delete_existing(self, destination: str) -> bool:
        if not os.path.lexists(destination):
            return True
        try:
            if not delete_file_now_or_later(destination):
                logger.info(f"Existing {destination} is in use, deletion deferred")
        except FileSystemError as e:
            self.set_error(OperationError.USER_DEFINED_ERROR, f"Failed to overwrite {destination}: {e.reason}")
            return False
        return True

    def undo_operation(self) -> bool:
        """
        Remove every recorded entry, newest first, and prune emptied directories.

        Returns:
            True on success. If an entry cannot be removed the error is set and
            the "files" value keeps the entries still on disk.
        """
        self.reset_error()
        remaining: Deque[str] = deque(self.value(KEY_FILES) or [])
        directories: List[str] = list(self.value(KEY_DIRECTORIES) or [])
        if not remaining and not directories:
            self.set_value(KEY_FILES, [])
            self.set_value(KEY_DIRECTORIES, [])
            return True

        if not self.check_argument_count(2, 3, USAGE):
            return False
        target_root = os.path.normpath(os.path.abspath(self.arguments[1]))

        while remaining:
            path = remaining[0]
            if os.path.lexists(path):
                try:
                    remove_file(path)
                except FileSystemError as e:
                    self.set_value(KEY_FILES, list(remaining))
                    self.set_error(OperationError.INVALID_ARGUMENTS, f"Could not remove {path}: {e.reason}")
                    return False
                self.emit_output_text_changed(path)
            else:
                logger.warning(f"{path} was already removed")
            remaining.popleft()
            # Directories that existed before the copy are never pruned
            prune_empty_parents(os.path.dirname(path), target_root, only=directories)

        for directory in directories:
            if os.path.isdir(directory) and not remove_empty_directory(directory):
                logger.debug(f"Keeping non-empty directory {directory}")

        self.set_value(KEY_FILES, [])
        self.set_value(KEY_DIRECTORIES, [])
        logger.info(f"Undid {self.name} into {target_root}")
        return True

    def test_operation(self) -> bool:
        return True

    def clone(self) -> 'CopyDirectoryOperation':
        return CopyDirectoryOperation()
