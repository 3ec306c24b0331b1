"""
Tests for the operation contract, the registry and progress events.
"""
import json

import pytest

from installer_ops.constants import OP_COPY_DIRECTORY, OP_CREATE_SHORTCUT, OUTPUT_TEXT_CHANGED
from installer_ops.core.events import EventBus
from installer_ops.core.registry import OperationRegistry, registry, register_operation
from installer_ops.execution import CopyDirectoryOperation, CreateShortcutOperation
from installer_ops.execution.operation import Operation, OperationError, take_option


class RecordingOperation(Operation):
    """Minimal operation that only remembers what it was asked to do."""

    def __init__(self, arguments=(), name="Recording"):
        super().__init__(name, arguments)

    def backup(self):
        pass

    def perform_operation(self):
        if not self.check_argument_count(1, 2, "<path> [mode]"):
            return False
        self.set_value("performed", list(self.arguments))
        self.emit_output_text_changed(self.arguments[0])
        return True

    def undo_operation(self):
        self.clear_value("performed")
        return True

    def test_operation(self):
        return True

    def clone(self):
        return RecordingOperation()


def test_check_argument_count():
    """Test argument count validation and its message."""
    operation = RecordingOperation(["a", "b", "c"])

    assert operation.perform_operation() is False
    assert operation.error == OperationError.INVALID_ARGUMENTS
    assert "3 arguments given" in operation.error_string
    assert "1 to 2 expected" in operation.error_string
    assert "<path> [mode]" in operation.error_string

    operation = RecordingOperation(["a"])
    assert operation.perform_operation() is True
    assert operation.error == OperationError.NO_ERROR
    assert operation.error_string == ""


def test_check_argument_count_exact():
    """A fixed count is reported as such."""
    operation = RecordingOperation()
    assert operation.check_argument_count(2) is False
    assert "0 arguments given, exactly 2 expected" in operation.error_string


def test_persisted_values():
    """Test the value store."""
    operation = RecordingOperation(["a"])

    assert operation.value("files") is None
    assert operation.value("files", []) == []
    assert operation.has_value("files") is False

    operation.set_value("files", ["/x", "/y"])
    assert operation.has_value("files") is True
    assert operation.value("files") == ["/x", "/y"]

    # values is a copy
    operation.values["files"].append("/z")
    assert operation.value("files") == ["/x", "/y"]

    operation.clear_value("files")
    assert operation.has_value("files") is False


def test_arguments_are_immutable():
    """Arguments are stored as a tuple of strings."""
    arguments = ["a", "b"]
    operation = RecordingOperation(arguments)
    arguments.append("c")

    assert operation.arguments == ("a", "b")


def test_arguments_are_set_once():
    """Only an unconfigured instance accepts arguments, and only once."""
    with pytest.raises(RuntimeError):
        RecordingOperation(["a"]).set_arguments(["b"])

    operation = registry.create(OP_COPY_DIRECTORY, ["/src", "/dst"])
    with pytest.raises(RuntimeError):
        operation.set_arguments(["/other", "/dst"])
    assert operation.arguments == ("/src", "/dst")

    prototype = RecordingOperation()
    prototype.set_arguments(["x"])
    assert prototype.arguments == ("x",)
    with pytest.raises(RuntimeError):
        prototype.set_arguments(["y"])


def test_incomplete_operation_cannot_be_created():
    """Every lifecycle method must be implemented."""
    class HalfDone(Operation):
        def perform_operation(self):
            return True

    with pytest.raises(TypeError):
        HalfDone("HalfDone")

    with pytest.raises(TypeError):
        Operation()


def test_progress_events():
    """Subscribers see every touched path, a failing one does not stop the rest."""
    operation = RecordingOperation(["/touched"])
    paths = []
    events = []

    def broken_handler(event_type, data):
        raise RuntimeError("progress dialog went away")

    operation.events.subscribe(OUTPUT_TEXT_CHANGED, broken_handler)
    operation.on_output_text_changed(paths.append)
    operation.events.subscribe(OUTPUT_TEXT_CHANGED, lambda event_type, data: events.append((event_type, data)))

    assert operation.perform_operation() is True
    assert paths == ["/touched"]
    assert events == [(OUTPUT_TEXT_CHANGED, {"operation": "Recording", "path": "/touched"})]


def test_event_bus_unsubscribe():
    """Test subscribing and unsubscribing handlers."""
    bus = EventBus()
    received = []

    def handler(event_type, data):
        received.append(data)

    bus.subscribe("changed", handler)
    assert bus.has_subscribers("changed")
    bus.publish("changed", {"n": 1})

    bus.unsubscribe("changed", handler)
    assert not bus.has_subscribers("changed")
    bus.publish("changed", {"n": 2})
    # Unknown events are fine
    bus.publish("other", {})

    assert received == [{"n": 1}]


def test_take_option():
    """An option token is extracted from anywhere in the list."""
    arguments = ["workingDirectory=/tmp", "/bin/app", "/home/u/App"]
    assert take_option(arguments, "workingDirectory=") == "/tmp"
    assert arguments == ["/bin/app", "/home/u/App"]

    arguments = ["/bin/app", "/home/u/App"]
    assert take_option(arguments, "workingDirectory=") is None
    assert arguments == ["/bin/app", "/home/u/App"]

    # Empty value is still an option
    arguments = ["/bin/app", "workingDirectory=", "/home/u/App"]
    assert take_option(arguments, "workingDirectory=") == ""
    assert arguments == ["/bin/app", "/home/u/App"]


def test_builtin_operations_are_registered():
    """Importing the package registers both operations."""
    operations = registry.list_operations()
    assert operations[OP_COPY_DIRECTORY] is CopyDirectoryOperation
    assert operations[OP_CREATE_SHORTCUT] is CreateShortcutOperation


def test_registry_create():
    """Created operations are fresh clones with their own arguments."""
    first = registry.create(OP_COPY_DIRECTORY, ["/src", "/dst"])
    second = registry.create(OP_COPY_DIRECTORY, ["/other", "/dst"])

    assert isinstance(first, CopyDirectoryOperation)
    assert first is not second
    assert first.arguments == ("/src", "/dst")
    assert second.arguments == ("/other", "/dst")
    assert first.events is not second.events

    with pytest.raises(KeyError):
        registry.create("Unknown", [])


def test_register_operation_decorator():
    """The decorator registers a prototype under the operation's name."""
    try:
        register_operation(RecordingOperation)
        operation = registry.create("Recording", ["x"])
        assert isinstance(operation, RecordingOperation)
    finally:
        registry.unregister("Recording")

    assert not registry.contains("Recording")


def test_separate_registry():
    """A registry instance can be used on its own."""
    own_registry = OperationRegistry()
    own_registry.register(RecordingOperation())
    assert list(own_registry.list_operations()) == ["Recording"]

    own_registry.clear()
    assert own_registry.list_operations() == {}

    with pytest.raises(ValueError):
        own_registry.register(RecordingOperation(name=""))


def test_serialization_round_trip():
    """An operation survives a trip through the transaction log format."""
    operation = registry.create(OP_COPY_DIRECTORY, ["/src", "/dst", "forceOverwrite"])
    operation.set_value("files", ["/dst/b", "/dst/a"])

    data = json.loads(json.dumps(operation.to_dict()))
    assert data == {
        "name": OP_COPY_DIRECTORY,
        "arguments": ["/src", "/dst", "forceOverwrite"],
        "values": {"files": ["/dst/b", "/dst/a"]},
    }

    restored = registry.from_dict(data)
    assert isinstance(restored, CopyDirectoryOperation)
    assert restored.arguments == operation.arguments
    assert restored.value("files") == ["/dst/b", "/dst/a"]


@pytest.mark.parametrize("operation_type", [CopyDirectoryOperation, CreateShortcutOperation])
def test_clone_and_test_operation(operation_type):
    """Clones are unconfigured and test_operation has no preconditions."""
    operation = operation_type(["/a", "/b"])
    operation.set_value("files", ["/b/x"])

    clone = operation.clone()
    assert type(clone) is operation_type
    assert clone.name == operation.name
    assert clone.arguments == ()
    assert clone.values == {}

    assert operation.test_operation() is True
    assert operation.backup() is None
