# installer_ops/core/registry.py
"""
Operation registry.

Maps operation names (as written in install scripts and serialized logs) to a
prototype instance. New instances are produced with the prototype's clone(),
so the driver never needs to know the concrete operation classes.
"""
from typing import Dict, Any, Type, Optional, Sequence, TypeVar, List, TYPE_CHECKING
import threading

from installer_ops.utils.logging import get_logger

if TYPE_CHECKING:
    from installer_ops.execution.operation import Operation

T = TypeVar('T')

logger = get_logger(__name__)


class OperationRegistry:
    """
    Registry of operation prototypes.

    This registry implements:
    - Registration by name, explicitly or through @register_operation
    - Creation of configured instances via clone()
    - Reconstruction of logged operations from their serialized form
    """

    _instance = None
    _lock = threading.RLock()

    @classmethod
    def get_instance(cls) -> 'OperationRegistry':
        """Get the process-wide default registry."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = OperationRegistry()
        return cls._instance

    def __init__(self):
        """Initialize the registry."""
        self._prototypes: Dict[str, 'Operation'] = {}
        self._registration_order: List[str] = []

    def register(self, prototype: 'Operation', name: Optional[str] = None) -> 'Operation':
        """
        Register an operation prototype.

        Args:
            prototype: An unconfigured operation instance
            name: Registry key, defaults to the prototype's name

        Returns:
            The registered prototype (for method chaining)
        """
        name = name or prototype.name
        if not name:
            raise ValueError(f"Cannot register {type(prototype).__name__} without a name")
        with self._lock:
            self._prototypes[name] = prototype
            if name not in self._registration_order:
                self._registration_order.append(name)
            logger.debug(f"Registered operation: {name} ({type(prototype).__name__})")
            return prototype

    def unregister(self, name: str) -> None:
        with self._lock:
            self._prototypes.pop(name, None)
            if name in self._registration_order:
                self._registration_order.remove(name)

    def contains(self, name: str) -> bool:
        return name in self._prototypes

    def create(self, name: str, arguments: Sequence[str] = ()) -> 'Operation':
        """
        Create a fresh operation for the given name.

        Args:
            name: Registered operation name
            arguments: Argument list for the new instance

        Returns:
            A new, unperformed operation

        Raises:
            KeyError: If no operation is registered under the name
        """
        try:
            prototype = self._prototypes[name]
        except KeyError:
            raise KeyError(f"Unknown operation: {name}") from None

        operation = prototype.clone()
        operation.set_arguments(arguments)
        return operation

    def from_dict(self, data: Dict[str, Any]) -> 'Operation':
        """Rebuild an operation, persisted values included, from Operation.to_dict() output."""
        operation = self.create(data["name"], data.get("arguments", ()))
        operation.restore_values(data.get("values", {}))
        return operation

    def list_operations(self) -> Dict[str, Type]:
        """
        Get a dictionary of all registered operations and their types.

        Returns:
            Dictionary of operation names and their classes
        """
        with self._lock:
            return {name: type(self._prototypes[name]) for name in self._registration_order}

    def clear(self) -> None:
        """Remove all registered operations."""
        with self._lock:
            self._prototypes.clear()
            self._registration_order.clear()


# Create global registry instance
registry = OperationRegistry.get_instance()


def register_operation(cls: Type[T]) -> Type[T]:
    """
    Class decorator registering an operation type with the default registry.

    The class must be constructible without arguments; that instance becomes
    the prototype.
    """
    registry.register(cls())
    return cls
