# installer_ops/execution/operation.py
"""
Reversible operation contract.

An operation is a named file-system action with an ordered argument list. The
driver calls backup() and perform_operation(), keeps the operation (including
its persisted values) in its transaction log, and later calls
undo_operation() to revert it. Results are reported through the boolean
return value together with error and error_string; operations do not raise
to the driver.
"""
import copy
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from installer_ops.constants import OUTPUT_TEXT_CHANGED
from installer_ops.core.events import EventBus
from installer_ops.utils.logging import get_logger

logger = get_logger(__name__)


class OperationError(IntEnum):
    """Error codes reported by a failed operation call."""
    NO_ERROR = 0
    INVALID_ARGUMENTS = 1      # malformed arguments or a failed undo step
    USER_DEFINED_ERROR = 2     # environment or I/O failure


class Operation(ABC):
    """
    Base class of all reversible operations.

    Subclasses set a name in __init__ and implement backup, perform_operation,
    undo_operation, test_operation and clone.
    """

    def __init__(self, name: str = "", arguments: Sequence[str] = ()):
        self._name = name
        self._arguments: Tuple[str, ...] = tuple(str(argument) for argument in arguments)
        # An instance built without arguments is a prototype, configured once later
        self._arguments_fixed = bool(self._arguments)
        self._values: Dict[str, Any] = {}
        self._error = OperationError.NO_ERROR
        self._error_string = ""
        self.events = EventBus()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, arguments={list(self._arguments)!r})"

    # --- identity and arguments ---

    @property
    def name(self) -> str:
        return self._name

    @property
    def arguments(self) -> Tuple[str, ...]:
        return self._arguments

    def set_arguments(self, arguments: Sequence[str]) -> None:
        """
        Configure a fresh instance; arguments are fixed once set.

        Raises:
            RuntimeError: If the instance already has its arguments.
        """
        if self._arguments_fixed:
            raise RuntimeError(f"Arguments of {self._name} are already set")
        self._arguments = tuple(str(argument) for argument in arguments)
        self._arguments_fixed = True

    def check_argument_count(self, minimum: int, maximum: Optional[int] = None,
                             usage: str = "") -> bool:
        """
        Validate the number of arguments.

        Args:
            minimum: Lowest accepted count.
            maximum: Highest accepted count, defaults to minimum.
            usage: Argument synopsis used in the error message.

        Returns:
            True if the count is acceptable; otherwise the error is set.
        """
        maximum = minimum if maximum is None else maximum
        count = len(self._arguments)
        if minimum <= count <= maximum:
            return True

        if minimum == maximum:
            expected = f"exactly {minimum}"
        else:
            expected = f"{minimum} to {maximum}"
        message = f"Invalid arguments in {self._name}: {count} arguments given, {expected} expected"
        if usage:
            message += f" ({usage})"
        self.set_error(OperationError.INVALID_ARGUMENTS, message)
        return False

    # --- persisted values ---

    def value(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set_value(self, key: str, value: Any) -> None:
        self._values[key] = value

    def has_value(self, key: str) -> bool:
        return key in self._values

    def clear_value(self, key: str) -> None:
        self._values.pop(key, None)

    @property
    def values(self) -> Dict[str, Any]:
        """A copy of all persisted values."""
        return copy.deepcopy(self._values)

    # --- error reporting ---

    @property
    def error(self) -> OperationError:
        return self._error

    @property
    def error_string(self) -> str:
        return self._error_string

    def set_error(self, error: OperationError, message: str = "") -> None:
        self._error = error
        self._error_string = message
        if error != OperationError.NO_ERROR:
            logger.error(message, operation=self._name)

    def reset_error(self) -> None:
        self._error = OperationError.NO_ERROR
        self._error_string = ""

    # --- progress ---

    def emit_output_text_changed(self, path: str) -> None:
        """Tell progress listeners that path was created or removed."""
        self.events.publish(OUTPUT_TEXT_CHANGED, {"operation": self._name, "path": path})

    def on_output_text_changed(self, callback: Callable[[str], None]) -> None:
        """Subscribe a callback receiving each touched path."""
        self.events.subscribe(OUTPUT_TEXT_CHANGED, lambda _event, data: callback(data["path"]))

    # --- lifecycle ---

    @abstractmethod
    def backup(self) -> None:
        """Save whatever perform_operation is about to destroy."""

    @abstractmethod
    def perform_operation(self) -> bool:
        pass

    @abstractmethod
    def undo_operation(self) -> bool:
        pass

    @abstractmethod
    def test_operation(self) -> bool:
        pass

    @abstractmethod
    def clone(self) -> 'Operation':
        """A fresh, unconfigured instance of the same operation type."""

    # --- serialization ---

    def to_dict(self) -> Dict[str, Any]:
        """Convert the operation to a dictionary for the transaction log."""
        return {
            "name": self._name,
            "arguments": list(self._arguments),
            "values": self.values,
        }

    def restore_values(self, values: Dict[str, Any]) -> None:
        """Replace the persisted values with ones read back from a log."""
        self._values = copy.deepcopy(dict(values))


def take_option(arguments: List[str], prefix: str) -> Optional[str]:
    """
    Remove the first "prefix..." token from arguments and return its value.

    Args:
        arguments: Argument list, modified in place.
        prefix: Option prefix including the separator, e.g. "workingDirectory=".

    Returns:
        The text after the prefix, or None if no token matched.
    """
    for index, argument in enumerate(arguments):
        if argument.startswith(prefix):
            del arguments[index]
            return argument[len(prefix):]
    return None
