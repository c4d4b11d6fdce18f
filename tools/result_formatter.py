"""
Turns mailbox tool results into compact text for the conversation context.

This text is all the model ever learns about a tool outcome, so list results
keep IDs, subjects and senders, and mutating calls keep the ID acted upon.
"""
from typing import Any, Dict, List, Optional

from decisions import ToolKind, ToolResult

NOT_AVAILABLE = "N/A"
NO_DATA_LINE = "Result: No data found."
MAX_FIELD_CHARS = 2000
TRUNCATION_SUFFIX = "... [truncated]"

TARGET_LABELS = {
    ToolKind.READ_MAIL: "ID",
    ToolKind.DELETE_MAIL: "ID",
    ToolKind.SEND_MAIL: "recipient",
}


def format_result(result: ToolResult, kind: ToolKind, target: Optional[str] = None) -> str:
    """
    Summarize a tool result for the context.

    Args:
        result: The tool outcome
        kind: Which tool produced it
        target: Identifier the call acted on (message ID, recipient), if any

    Returns:
        Multi-line summary starting with "Tool Call: <Kind>"
    """
    header = f"Tool Call: {kind.display_name}"

    if not result.is_ok:
        where = f" for {TARGET_LABELS.get(kind, 'target')} {target}" if target else ""
        return f"{header} failed{where}: {result.error}"

    payload = result.payload
    if payload is None or (isinstance(payload, (list, tuple)) and len(payload) == 0):
        return f"{header}\n{NO_DATA_LINE}"

    if isinstance(payload, (list, tuple)):
        lines = [header, f"Result: Retrieved {len(payload)} items"]
        lines.extend(_format_row(item) for item in payload)
        return "\n".join(lines)

    if isinstance(payload, dict):
        if not payload:
            return f"{header}\n{NO_DATA_LINE}"
        return "\n".join([header] + _format_block(payload))

    return f"{header}\nResult: {_render_value(payload)}"


def _label(field: str) -> str:
    """`message_id` -> `Message Id`, `from` -> `From`."""
    return " ".join(word[:1].upper() + word[1:] for word in field.split("_") if word)


def _render_value(value: Any) -> str:
    if value is None:
        return NOT_AVAILABLE
    text = str(value).strip()
    if not text:
        return NOT_AVAILABLE
    if len(text) > MAX_FIELD_CHARS:
        text = text[:MAX_FIELD_CHARS] + TRUNCATION_SUFFIX
    return text


def _format_row(item: Any) -> str:
    if not isinstance(item, dict):
        return _render_value(item)
    # One line per element
    return ", ".join(
        f"{_label(key)}: {' '.join(_render_value(value).split())}"
        for key, value in item.items()
    )


def _format_block(item: Dict[str, Any]) -> List[str]:
    return [f"{_label(key)}: {_render_value(value)}" for key, value in item.items()]
