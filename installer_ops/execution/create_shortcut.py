# installer_ops/execution/create_shortcut.py
"""
CreateShortcut operation.

Creates a link (a symlink, or a shell shortcut for .lnk files on Windows) and
removes it again on undo.

Arguments: <linkTarget> <linkLocation> [invocationArguments]
           plus an optional "workingDirectory=<path>" token anywhere.
"""
import os
from typing import List, Optional, Tuple

from installer_ops.config import OperationsConfig, PruneMode, config_manager
from installer_ops.constants import (
    OP_CREATE_SHORTCUT, KEY_CREATED_DIRECTORIES, WORKING_DIRECTORY_OPTION
)
from installer_ops.core.registry import register_operation
from installer_ops.execution.filesystem import (
    FileSystemError, error_text, create_link, set_shortcut_metadata,
    supports_shortcut_metadata, delete_file_now_or_later, remove_file,
    remove_system_generated_files, remove_empty_directory, prune_empty_parents,
    missing_directories
)
from installer_ops.execution.operation import Operation, OperationError, take_option
from installer_ops.utils.logging import get_logger

logger = get_logger(__name__)


@register_operation
class CreateShortcutOperation(Operation):
    """Create a link, optionally with working directory and arguments."""

    def __init__(self, arguments=(), config: Optional[OperationsConfig] = None):
        super().__init__(OP_CREATE_SHORTCUT, arguments)
        self._config = config

    @property
    def config(self) -> OperationsConfig:
        """Explicit settings, or the application-wide ones."""
        return self._config if self._config is not None else config_manager.config.operations

    def _parse_arguments(self) -> Optional[Tuple[str, str, Optional[str], Optional[str]]]:
        """Split the arguments into target, location, working directory and arguments."""
        args = list(self.arguments)
        working_directory = take_option(args, WORKING_DIRECTORY_OPTION)

        if len(args) not in (2, 3):
            self.set_error(
                OperationError.INVALID_ARGUMENTS,
                f"Invalid arguments in {self.name}: {len(args)} arguments given, 2 or 3 expected "
                f"(optional: \"{WORKING_DIRECTORY_OPTION}...\")"
            )
            return None

        link_target, link_location = args[0], args[1]
        invocation_arguments = args[2] if len(args) > 2 else None
        return link_target, os.path.abspath(link_location), working_directory, invocation_arguments

    def backup(self) -> None:
        pass

    def perform_operation(self) -> bool:
        """
        Create the link, creating its directory first if needed.

        Returns:
            True on success, False with the error set otherwise.
        """
        self.reset_error()
        parsed = self._parse_arguments()
        if parsed is None:
            return False
        link_target, link_location, working_directory, invocation_arguments = parsed
        link_directory = os.path.dirname(link_location)

        created = missing_directories(link_directory)
        try:
            os.makedirs(link_directory, exist_ok=True)
        except OSError as e:
            self.set_error(
                OperationError.USER_DEFINED_ERROR,
                f"Could not create folder {link_directory}: {error_text(e)}."
            )
            return False
        # Deepest first, the order undo removes them in
        self.set_value(KEY_CREATED_DIRECTORIES, list(reversed(created)))

        # Remove a possible existing older one
        try:
            delete_file_now_or_later(link_location)
        except FileSystemError as e:
            self.set_error(
                OperationError.USER_DEFINED_ERROR,
                f"Failed to overwrite {link_location}: {e.reason}"
            )
            return False

        try:
            create_link(link_target, link_location)
        except FileSystemError as e:
            self.set_error(
                OperationError.USER_DEFINED_ERROR,
                f"Could not create link {link_location}: {e.reason}"
            )
            return False

        if not self._apply_metadata(link_target, link_location, working_directory, invocation_arguments):
            return False

        logger.info(f"Created shortcut {link_location} -> {link_target}")
        self.emit_output_text_changed(link_location)
        return True

    def _apply_metadata(self, link_target: str, link_location: str,
                        working_directory: Optional[str], invocation_arguments: Optional[str]) -> bool:
        if not supports_shortcut_metadata(link_location):
            if working_directory or invocation_arguments:
                logger.debug(f"{link_location} cannot carry working directory or arguments")
            return True

        if not working_directory:
            working_directory = os.path.dirname(os.path.abspath(link_target))
        try:
            set_shortcut_metadata(link_location, link_target, working_directory, invocation_arguments)
        except FileSystemError as e:
            if not self.config.strict_metadata:
                logger.warning(f"Created {link_location} without working directory/arguments: {e}")
                return True
            # Strict: leave nothing half-configured behind
            try:
                remove_file(link_location)
            except FileSystemError as remove_error:
                logger.warning(str(remove_error))
            self.set_error(OperationError.USER_DEFINED_ERROR, str(e))
            return False
        return True

    def undo_operation(self) -> bool:
        """
        Remove the link and prune the directories around it.

        Removal problems are logged, not reported: undo always succeeds once
        the arguments are valid.
        """
        self.reset_error()
        parsed = self._parse_arguments()
        if parsed is None:
            return False
        link_location = parsed[1]

        if os.path.lexists(link_location):
            try:
                delete_file_now_or_later(link_location)
                self.emit_output_text_changed(link_location)
            except FileSystemError as e:
                logger.warning(f"Can't delete: {link_location} ({e.reason})")

        clutter = self.config.system_generated_files
        if self.config.prune_mode == PruneMode.CREATED_ONLY:
            removed = self._prune_created_directories(clutter)
        else:
            # Climbs past directories this operation did not create as well
            removed = prune_empty_parents(os.path.dirname(link_location), self.config.boundary(), clutter)
        for directory in removed:
            logger.debug(f"Deleted directory: {directory}")

        self.set_value(KEY_CREATED_DIRECTORIES, [])
        return True

    def _prune_created_directories(self, clutter: List[str]) -> List[str]:
        removed = []
        for directory in self.value(KEY_CREATED_DIRECTORIES) or []:
            remove_system_generated_files(directory, clutter)
            if not remove_empty_directory(directory):
                break
            removed.append(directory)
        return removed

    def test_operation(self) -> bool:
        return True

    def clone(self) -> 'CreateShortcutOperation':
        return CreateShortcutOperation(config=self._config)
