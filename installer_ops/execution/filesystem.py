# installer_ops/execution/filesystem.py
"""
File system helpers for the installer operations.

This module provides the low-level primitives the operations are built on:
deleting files that may be locked, creating links and shortcuts, and pruning
directories that an undo left empty. Failures raise FileSystemError carrying
the offending path and the operating system's error text.
"""
import os
import shutil
import sys
import uuid
from pathlib import Path
from typing import Iterable, List, Optional, Union

from installer_ops.constants import SYSTEM_GENERATED_FILES
from installer_ops.utils.logging import get_logger

IS_WINDOWS = sys.platform == "win32"

if IS_WINDOWS:
    import pythoncom
    import win32api
    import win32con
    from win32com.client import Dispatch

logger = get_logger(__name__)

PathLike = Union[str, Path]

SHORTCUT_SUFFIX = ".lnk"


class FileSystemError(Exception):
    """Exception raised for file system operation errors."""

    def __init__(self, message: str, path: Optional[PathLike] = None, reason: str = ""):
        super().__init__(message)
        self.path = str(path) if path is not None else None
        self.reason = reason


def error_text(error: BaseException) -> str:
    """The human-readable part of an OSError (or any other exception)."""
    if isinstance(error, OSError) and error.strerror:
        return error.strerror
    return str(error)


def is_within(path: PathLike, root: PathLike) -> bool:
    """
    Whether path equals root or lies below it.

    Both paths are compared lexically after normalization; symlinks are not
    resolved.
    """
    path = os.path.normcase(os.path.normpath(os.path.abspath(path)))
    root = os.path.normcase(os.path.normpath(os.path.abspath(root)))
    try:
        return os.path.commonpath([path, root]) == root
    except ValueError:
        # Different drives on Windows
        return False


def resolve_symlink_target(link: PathLike) -> str:
    """
    Absolute path a symlink points at.

    Relative link text is resolved against the link's own directory. Only the
    link itself is dereferenced; further links along the way are kept.
    """
    target = os.readlink(link)
    if not os.path.isabs(target):
        target = os.path.join(os.path.dirname(os.path.abspath(link)), target)
    return os.path.normpath(target)


def _remove_entry(path: str) -> None:
    # Directory symlinks and junctions on Windows are removed like directories
    if IS_WINDOWS and os.path.isdir(path) and (os.path.islink(path) or _is_junction(path)):
        os.rmdir(path)
    else:
        os.unlink(path)


def _is_junction(path: str) -> bool:
    is_junction = getattr(os.path, "isjunction", None)
    return bool(is_junction and is_junction(path))


def remove_file(path: PathLike) -> None:
    """
    Delete a file or link right away.

    Args:
        path: The file or link to delete.

    Raises:
        FileSystemError: If the entry could not be removed.
    """
    path = str(path)
    try:
        _remove_entry(path)
    except OSError as e:
        raise FileSystemError(f"Could not remove {path}: {error_text(e)}", path, error_text(e)) from e
    logger.debug(f"Removed {path}")


def delete_file_now_or_later(path: PathLike) -> bool:
    """
    Delete a file, deferring the removal if the file is in use.

    A file locked by another process (typically a running executable on
    Windows) is moved aside inside its directory and scheduled for deletion at
    the next reboot. Callers treat both outcomes as success; the moved file may
    stay visible until it is actually removed.

    Args:
        path: The file or link to delete. A missing path counts as deleted.

    Returns:
        True if the file was deleted immediately, False if deletion was deferred.

    Raises:
        FileSystemError: If the file could neither be deleted nor moved aside.
    """
    path = str(path)
    if not os.path.lexists(path):
        return True

    try:
        _remove_entry(path)
        logger.debug(f"Deleted {path}")
        return True
    except OSError as e:
        if not IS_WINDOWS:
            raise FileSystemError(f"Could not delete {path}: {error_text(e)}", path, error_text(e)) from e
        first_error = e

    # Windows: a locked file can still be renamed, which frees the path
    trash_path = f"{path}.{uuid.uuid4().hex[:8]}.old"
    try:
        os.rename(path, trash_path)
    except OSError as e:
        raise FileSystemError(
            f"Could not delete {path}: {error_text(first_error)}", path, error_text(first_error)
        ) from e

    try:
        win32api.MoveFileEx(trash_path, None, win32con.MOVEFILE_DELAY_UNTIL_REBOOT)
        logger.info(f"Scheduled {trash_path} (was {path}) for deletion at reboot")
    except Exception as e:
        # Needs administrator rights; the original path is free either way
        logger.warning(f"Could not schedule {trash_path} for deletion: {e}")
    return False


def copy_file(source: PathLike, destination: PathLike) -> None:
    """
    Copy file contents byte for byte, keeping the permission bits.

    Unlike shutil.copyfile this never replaces an existing destination; that
    case fails like any other I/O error. A partially written destination is
    removed again.

    Raises:
        FileSystemError: If the copy failed.
    """
    source, destination = str(source), str(destination)
    created = False
    try:
        with open(source, "rb") as fsrc, open(destination, "xb") as fdst:
            created = True
            shutil.copyfileobj(fsrc, fdst)
        shutil.copymode(source, destination)
    except OSError as e:
        if created:
            try:
                os.unlink(destination)
            except OSError:
                logger.warning(f"Could not remove partial copy {destination}")
        raise FileSystemError(
            f"Could not copy {source} to {destination}, error was: {error_text(e)}",
            destination, error_text(e)
        ) from e
    logger.debug(f"Copied {source} to {destination}")


def create_symlink(target: PathLike, link: PathLike) -> None:
    """
    Create a symbolic link at link pointing to target.

    Args:
        target: Link text; stored verbatim.
        link: Location of the new link.

    Raises:
        FileSystemError: If the link could not be created.
    """
    target, link = str(target), str(link)
    try:
        os.symlink(target, link, target_is_directory=os.path.isdir(target))
    except OSError as e:
        raise FileSystemError(
            f"Could not create link {link} -> {target}: {error_text(e)}", link, error_text(e)
        ) from e
    logger.debug(f"Linked {link} -> {target}")


def is_shell_shortcut(link: PathLike) -> bool:
    """Whether link is created as a native shell shortcut rather than a symlink."""
    return IS_WINDOWS and str(link).lower().endswith(SHORTCUT_SUFFIX)


def supports_shortcut_metadata(link: PathLike) -> bool:
    """Whether a working directory and arguments can be stored with the link."""
    return is_shell_shortcut(link)


def _save_shell_shortcut(link: str, target: str, working_directory: Optional[str] = None,
                         arguments: Optional[str] = None) -> None:
    pythoncom.CoInitialize()
    try:
        shell = Dispatch("WScript.Shell")
        shortcut = shell.CreateShortCut(link)
        shortcut.Targetpath = os.path.normpath(target)
        if working_directory is not None:
            shortcut.WorkingDirectory = os.path.normpath(working_directory)
        if arguments is not None:
            shortcut.Arguments = arguments
        shortcut.save()
    finally:
        pythoncom.CoUninitialize()


def create_link(target: PathLike, link: PathLike) -> None:
    """
    Create a link from target to link.

    On Windows, a link ending in .lnk becomes a shell shortcut; everywhere
    else a symbolic link is created.

    Raises:
        FileSystemError: If the link could not be created.
    """
    target, link = str(target), str(link)
    if not is_shell_shortcut(link):
        create_symlink(target, link)
        return

    try:
        _save_shell_shortcut(link, target)
    except Exception as e:
        raise FileSystemError(f"Could not create link {link}: {e}", link, str(e)) from e
    logger.debug(f"Created shortcut {link} -> {target}")


def set_shortcut_metadata(link: PathLike, target: PathLike, working_directory: PathLike,
                          arguments: Optional[str] = None) -> bool:
    """
    Store working directory and invocation arguments with a shortcut.

    Args:
        link: An existing shortcut created by create_link.
        target: The shortcut's target.
        working_directory: Directory the target is started in.
        arguments: Command line arguments passed to the target, if any.

    Returns:
        True if the metadata was written, False if the link type has none.

    Raises:
        FileSystemError: If writing the metadata failed.
    """
    if not supports_shortcut_metadata(link):
        return False

    link = str(link)
    try:
        _save_shell_shortcut(link, str(target), str(working_directory), arguments)
    except Exception as e:
        raise FileSystemError(f"Could not update shortcut {link}: {e}", link, str(e)) from e
    logger.debug(f"Set working directory {working_directory} on {link}")
    return True


def is_system_generated_file(name: str, names: Optional[Iterable[str]] = None) -> bool:
    """Whether a file name is clutter the desktop shell creates on its own."""
    return name in set(names if names is not None else SYSTEM_GENERATED_FILES)


def remove_system_generated_files(directory: PathLike, names: Optional[Iterable[str]] = None) -> List[str]:
    """
    Remove shell clutter from a directory that holds nothing else.

    Directories with any other entry are left untouched, so files the user
    still sees next to their own content are never removed.

    Returns:
        The paths that were removed.
    """
    names = set(names if names is not None else SYSTEM_GENERATED_FILES)
    try:
        entries = os.listdir(directory)
    except OSError:
        return []

    if not entries or not all(is_system_generated_file(entry, names) for entry in entries):
        return []

    removed = []
    for entry in entries:
        entry_path = os.path.join(str(directory), entry)
        try:
            os.unlink(entry_path)
        except OSError as e:
            logger.warning(f"Could not remove {entry_path}: {error_text(e)}")
            continue
        removed.append(entry_path)
        logger.debug(f"Removed system generated file {entry_path}")
    return removed


def remove_empty_directory(path: PathLike) -> bool:
    """
    Remove a directory if it is empty.

    Returns:
        True if removed; False if it is not empty, missing, or not removable.
    """
    try:
        os.rmdir(path)
    except OSError:
        return False
    logger.debug(f"Deleted directory: {path}")
    return True


def missing_directories(path: PathLike) -> List[str]:
    """The directories a recursive mkdir would create for path, shallowest first."""
    missing = []
    current = os.path.abspath(path)
    while not os.path.lexists(current):
        missing.append(current)
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent
    missing.reverse()
    return missing


def _path_key(path: PathLike) -> str:
    return os.path.normcase(os.path.normpath(os.path.abspath(path)))


def prune_empty_parents(start: PathLike, stop: PathLike,
                        clutter: Optional[Iterable[str]] = None,
                        only: Optional[Iterable[PathLike]] = None) -> List[str]:
    """
    Remove start and its ancestors while they are empty.

    The climb ends at the first directory that cannot be removed and never
    touches stop itself or anything outside it.

    Args:
        start: Deepest directory to consider.
        stop: Boundary directory, excluded.
        clutter: System generated file names to clear out of a level first.
        only: If given, the climb also ends at the first directory not listed.

    Returns:
        The removed directories, deepest first.
    """
    removed = []
    allowed = None if only is None else {_path_key(path) for path in only}
    current = os.path.normpath(os.path.abspath(start))
    stop = os.path.normpath(os.path.abspath(stop))
    while is_within(current, stop) and not is_within(stop, current):
        if allowed is not None and _path_key(current) not in allowed:
            break
        if clutter is not None:
            remove_system_generated_files(current, clutter)
        if not remove_empty_directory(current):
            break
        removed.append(current)
        current = os.path.dirname(current)
    return removed
