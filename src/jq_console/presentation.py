# presentation.py
# Pure derivation: PipelineSnapshot -> the one details block to show.
# No I/O, no state. display.py renders what this returns.

from jq_console.models import DetailKind, Details, PipelineSnapshot

TRUNCATE_LIMIT = 5000

TRUNCATION_SUFFIX = (
    "... (rest of the result is truncated for performance reasons.\n"
    '     Use "Copy Result" action to get the full result)'
)

DOCUMENT_ERROR_HEADING = "### Can't load JSON document 🙍‍♀️"
LOADING_TEXT = "### Spinning gears... ⌛"
EMPTY_CLIPBOARD_TEXT = "### No JSON in clipboard 🤷‍♀️\n\nCopy a JSON document to the clipboard"
AWAITING_QUERY_TEXT = "Type a query to see the result"


def truncate_result(text: str, limit: int = TRUNCATE_LIMIT) -> str:
    """Display-only truncation. Text of at most `limit` characters is returned as is."""
    if len(text) <= limit:
        return text
    return text[:limit] + "\n" + TRUNCATION_SUFFIX


def derive_details(snapshot: PipelineSnapshot, limit: int = TRUNCATE_LIMIT) -> Details:
    """
    Pick exactly one block, in precedence order:

      document error > loading > empty clipboard > query error
      > result > awaiting query
    """
    document = snapshot.document
    execution = snapshot.execution

    if document.error:
        return Details(
            kind=DetailKind.DOCUMENT_ERROR,
            markdown=f"{DOCUMENT_ERROR_HEADING}\n\n{document.error}",
        )
    if snapshot.is_loading:
        return Details(kind=DetailKind.LOADING, markdown=LOADING_TEXT)
    if document.document is None:
        return Details(kind=DetailKind.EMPTY_CLIPBOARD, markdown=EMPTY_CLIPBOARD_TEXT)
    if execution.error:
        return Details(kind=DetailKind.QUERY_ERROR, markdown=f"Error: {execution.error}")
    if execution.result:
        return Details(
            kind=DetailKind.RESULT,
            markdown="```json\n" + truncate_result(execution.result, limit) + "\n```",
        )
    return Details(kind=DetailKind.AWAITING_QUERY, markdown=AWAITING_QUERY_TEXT)
