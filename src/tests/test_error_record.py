import pytest

from arbor.exceptions import (
    ErrorCategory,
    ErrorKind,
    ErrorRecord,
    HandlerException,
    InvocationFailedException,
    SetContentNotSupportedException,
)


@pytest.mark.parametrize(
    "exception, kind, category",
    [
        (PermissionError("denied"), ErrorKind.SECURITY, ErrorCategory.PERMISSION_DENIED),
        (FileNotFoundError("gone"), ErrorKind.IO, ErrorCategory.READ_ERROR),
        (ValueError("bad"), ErrorKind.VALIDATION, ErrorCategory.INVALID_DATA),
        (KeyError("missing"), ErrorKind.VALIDATION, ErrorCategory.INVALID_DATA),
        (RuntimeError("boom"), ErrorKind.HANDLER, ErrorCategory.NOT_SPECIFIED),
    ],
)
def test_classification(exception, kind, category):
    record = ErrorRecord.from_exception(exception, node_name="earth")

    assert record.kind is kind
    assert record.category is category
    assert record.error_id == exception.__class__.__name__
    assert record.node_name == "earth"
    assert record.exception is exception


def test_handler_exception_carries_kind_and_id():
    exception = HandlerException("bad data", kind=ErrorKind.VALIDATION, error_id="Planet.BadData")

    record = ErrorRecord.from_exception(exception, node_name="earth")

    assert record.kind is ErrorKind.VALIDATION
    assert record.error_id == "Planet.BadData"
    assert str(record) == "Planet.BadData (validation) on 'earth': bad data"


def test_explicit_id_and_category_win():
    record = ErrorRecord.from_exception(
        ValueError("x"),
        node_name="earth",
        error_id="GetContentReaderIOError",
        category=ErrorCategory.READ_ERROR,
    )

    assert record.error_id == "GetContentReaderIOError"
    assert record.category is ErrorCategory.READ_ERROR


def test_stack_trace_only_for_raised_exceptions():
    assert ErrorRecord.from_exception(RuntimeError("x"), node_name="n").stack_trace is None

    try:
        raise RuntimeError("raised")
    except RuntimeError as e:
        record = ErrorRecord.from_exception(e, node_name="n")

    assert "raise RuntimeError" in record.stack_trace


def test_message_falls_back_to_class_name():
    record = ErrorRecord.from_exception(RuntimeError(), node_name="n")

    assert record.message == "RuntimeError"


def test_set_content_not_supported():
    exception = SetContentNotSupportedException("earth")

    assert exception.error_id == "SetContent.NotSupported"
    assert "earth" in str(exception)


def test_invocation_failed_summarizes_errors():
    errors = [
        ErrorRecord.from_exception(SetContentNotSupportedException("earth"), node_name="earth"),
        ErrorRecord.from_exception(OSError("disk full"), node_name="earth"),
    ]

    exception = InvocationFailedException(operation="SetContent", node_name="earth", errors=errors)

    assert exception.error_id == "SetContent.NotSupported"
    assert "2 errors" in str(exception)
    assert exception.errors == errors
