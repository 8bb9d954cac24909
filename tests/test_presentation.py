import pytest

from jq_console.models import (
    BinaryState,
    DetailKind,
    DocumentState,
    ExecutionState,
    PipelineSnapshot,
    SourceDocument,
)
from jq_console.presentation import (
    AWAITING_QUERY_TEXT,
    TRUNCATION_SUFFIX,
    derive_details,
    truncate_result,
)

DOCUMENT = SourceDocument(raw_text='{"a":1}', parsed_ok=True)


def _snapshot(binary=None, document=None, execution=None) -> PipelineSnapshot:
    return PipelineSnapshot(
        binary=binary or BinaryState(checking=False),
        document=document or DocumentState(loading=False, document=DOCUMENT),
        execution=execution or ExecutionState(),
    )


# ---------------------------------------------------------------------------
# Truncation
# ---------------------------------------------------------------------------


def test_truncation_boundary_exact_limit():
    text = "x" * 5000
    assert truncate_result(text) == text


def test_truncation_boundary_one_over():
    text = "x" * 4999 + "yz"
    truncated = truncate_result(text)
    assert truncated == "x" * 4999 + "y" + "\n" + TRUNCATION_SUFFIX
    assert "z" not in truncated


def test_truncation_custom_limit():
    assert truncate_result("abcdef", limit=3) == "abc\n" + TRUNCATION_SUFFIX


def test_result_block_is_truncated_for_display_only():
    result = "1" * 6000
    snapshot = _snapshot(execution=ExecutionState(result=result))
    details = derive_details(snapshot)

    assert details.kind == DetailKind.RESULT
    assert details.markdown.startswith("```json\n" + "1" * 5000 + "\n...")
    assert snapshot.execution.result == result


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


def test_document_error_wins_over_loading():
    snapshot = _snapshot(
        binary=BinaryState(checking=True),
        document=DocumentState(loading=False, error="JSON document in clipboard is invalid"),
        execution=ExecutionState(running=True, error="boom", result="1"),
    )
    details = derive_details(snapshot)
    assert details.kind == DetailKind.DOCUMENT_ERROR
    assert details.markdown.endswith("JSON document in clipboard is invalid")


@pytest.mark.parametrize(
    "binary, document, execution",
    [
        (BinaryState(checking=True), None, None),
        (None, DocumentState(loading=True), None),
        (None, None, ExecutionState(running=True, result="1")),
    ],
)
def test_loading(binary, document, execution):
    assert derive_details(_snapshot(binary, document, execution)).kind == DetailKind.LOADING


def test_empty_clipboard_ignores_binary_state():
    for binary in (BinaryState(checking=False), BinaryState(checking=False, error="offline")):
        snapshot = _snapshot(binary=binary, document=DocumentState(loading=False))
        assert derive_details(snapshot).kind == DetailKind.EMPTY_CLIPBOARD


def test_query_error_wins_over_result():
    snapshot = _snapshot(execution=ExecutionState(result="1", error="jq: error: syntax error"))
    details = derive_details(snapshot)
    assert details.kind == DetailKind.QUERY_ERROR
    assert "syntax error" in details.markdown


def test_awaiting_query():
    details = derive_details(_snapshot())
    assert details.kind == DetailKind.AWAITING_QUERY
    assert details.markdown == AWAITING_QUERY_TEXT
