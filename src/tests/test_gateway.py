import pytest

from arbor.exceptions import (
    ContractException,
    ErrorCategory,
    ErrorKind,
    HandlerException,
)
from arbor.handlers import HandlerChannel, LeafHandler, Operation
from conftest import Planet, Planets


class Echo(LeafHandler):
    def __init__(self, name, output):
        super().__init__(name)
        self.output = output

    def get_content(self):
        return self.output


class Chatty(LeafHandler):
    """Reports errors while still producing content."""

    def get_content(self):
        yield "first"
        self.call_state.write_error("soft failure")
        self.call_state.write_error(PermissionError("no access"))
        yield "second"


def test_results_are_pushed_in_order(gateway, context):
    results, errors = gateway.collect(
        Planets("solar", [Planet("earth"), Planet("mars")]),
        Operation.GET_CHILD_ITEM,
        context=context,
    )

    assert [result.name for result in results] == ["earth", "mars"]
    assert errors == []


@pytest.mark.parametrize(
    "output, expected",
    [
        (None, []),
        ("single line", ["single line"]),
        ({"key": "value"}, [{"key": "value"}]),
        (42, [42]),
        (["a", "b"], ["a", "b"]),
    ],
)
def test_output_shapes(gateway, context, output, expected):
    results, errors = gateway.collect(
        Echo("echo", output), Operation.GET_CONTENT, context=context
    )

    assert results == expected
    assert errors == []


def test_raising_handler_keeps_partial_results(gateway, context):
    handler = Planets(
        "solar", [Planet("earth"), Planet("mars"), Planet("venus")], raise_after=2
    )

    results, errors = gateway.collect(handler, Operation.GET_CHILD_ITEM, context=context)

    assert [result.name for result in results] == ["earth", "mars"]
    assert len(errors) == 1
    assert errors[0].kind is ErrorKind.IO
    assert errors[0].node_name == "solar"
    assert errors[0].message == "backend went away"
    assert errors[0].stack_trace


def test_write_error_is_not_terminating(gateway, context):
    results, errors = gateway.collect(Chatty("chatty"), Operation.GET_CONTENT, context=context)

    assert results == ["first", "second"]
    assert [error.kind for error in errors] == [ErrorKind.HANDLER, ErrorKind.SECURITY]
    assert errors[0].message == "soft failure"
    assert errors[1].category is ErrorCategory.PERMISSION_DENIED


def test_write_error_outside_a_call_raises():
    handler = Chatty("chatty")

    with pytest.raises(RuntimeError):
        handler.call_state.write_error("nobody listens")


def test_operation_must_match_handler_variant(gateway, context):
    with pytest.raises(ContractException):
        gateway.collect(Planet("earth"), Operation.GET_CHILD_ITEM, context=context)

    with pytest.raises(ContractException):
        gateway.collect(Planets("solar"), Operation.GET_CONTENT, context=context)


def test_set_content_not_supported_by_default(gateway, context):
    results, errors = gateway.collect(
        LeafHandler("readonly"),
        Operation.SET_CONTENT,
        ("/tmp/content", "/readonly"),
        context=context,
    )

    assert results == []
    assert len(errors) == 1
    assert errors[0].error_id == "SetContent.NotSupported"
    assert isinstance(errors[0].exception, HandlerException)


def test_call_state_is_bound_only_during_call(gateway, context):
    handler = Planets("solar", [Planet("earth")])
    seen = []

    gateway.call(
        handler,
        Operation.GET_CHILD_ITEM,
        on_output=lambda item: seen.append(handler.call_state.path),
        context=context.replace(path="/solar", force=True),
    )

    assert seen == ["/solar"]
    assert handler.call_state.force is True
    # The channel is detached once the call returns
    with pytest.raises(RuntimeError):
        handler.call_state.write_error("late")


def test_stopping_the_channel_stops_consumption(gateway, context):
    channel = gateway.open_channel()
    handler = Planets("solar", [Planet("earth"), Planet("mars"), Planet("venus")])
    results = []

    def on_output(item):
        results.append(item)
        channel.stop()

    gateway.call(
        handler,
        Operation.GET_CHILD_ITEM,
        on_output=on_output,
        context=context,
        channel=channel,
    )

    assert [result.name for result in results] == ["earth"]
    assert channel.stopped


def test_channel_begin_resets_stop_signal():
    channel = HandlerChannel()
    first = channel.begin()
    channel.stop()

    second = channel.begin()

    assert first.is_set()
    assert not second.is_set()
    assert not channel.stopped


def test_channel_drops_errors_without_listener():
    channel = HandlerChannel()

    # Nothing attached: the record is logged and dropped
    channel.write_error(object())
