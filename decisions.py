"""
Decision types exchanged between the decision source (the model) and the agent loop.

A decision is either:
- Terminal: final rendered HTML, ends the loop
- ToolCall: a request to perform one mailbox operation

Also defines ToolResult (the value every mailbox operation returns) and the
AgentFailure exception hierarchy raised out of the loop on protocol violations.
"""
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from config import DEFAULT_MAX_RESULTS, MAX_LIST_RESULTS


# ============================================================
# ERRORS
# ============================================================

class AgentFailure(Exception):
    """Base class for failures that abort a single agent run."""
    pass


class DecisionUnavailable(AgentFailure):
    """The decision source returned nothing usable (None or malformed)."""
    pass


class UnknownToolKind(AgentFailure):
    """The decision source asked for a tool the agent does not know."""
    pass


class IterationLimitExceeded(AgentFailure):
    """The model kept calling tools without ever rendering output."""
    pass


# ============================================================
# TOOL KINDS & ARGUMENTS
# ============================================================

class ToolKind(Enum):
    LIST_MAIL = "ListMail"
    READ_MAIL = "ReadMail"
    SEND_MAIL = "SendMail"
    DELETE_MAIL = "DeleteMail"

    @property
    def display_name(self) -> str:
        return self.value


@dataclass(frozen=True)
class ListMailArgs:
    max_results: int = DEFAULT_MAX_RESULTS


@dataclass(frozen=True)
class ReadMailArgs:
    id: str = ""


@dataclass(frozen=True)
class SendMailArgs:
    to: str = ""
    subject: str = ""
    body: str = ""


@dataclass(frozen=True)
class DeleteMailArgs:
    id: str = ""


ToolArgs = Union[ListMailArgs, ReadMailArgs, SendMailArgs, DeleteMailArgs]


# ============================================================
# DECISIONS
# ============================================================

@dataclass(frozen=True)
class Terminal:
    """Final output for the caller. The only way a run succeeds."""
    rendered_output: str


@dataclass(frozen=True)
class ToolCall:
    """A request to run one mailbox operation."""
    kind: ToolKind
    args: ToolArgs

    @property
    def target(self) -> Optional[str]:
        """Identifier the call acts on, if any (used in failure lines)."""
        if isinstance(self.args, (ReadMailArgs, DeleteMailArgs)):
            return self.args.id or None
        if isinstance(self.args, SendMailArgs):
            return self.args.to or None
        return None


Decision = Union[Terminal, ToolCall]


# ============================================================
# TOOL RESULTS
# ============================================================

@dataclass(frozen=True)
class ToolResult:
    """
    Outcome of a mailbox operation.

    Attributes:
        payload: Kind-specific data (list of dicts or a dict) when successful
        error: Failure reason (None when successful)
        unauthorized: True when the failure was an expired/missing credential
    """
    payload: Any = None
    error: Optional[str] = None
    unauthorized: bool = False

    @property
    def is_ok(self) -> bool:
        return self.error is None

    @classmethod
    def succeeded(cls, payload: Any) -> "ToolResult":
        return cls(payload=payload)

    @classmethod
    def failed(cls, reason: str, unauthorized: bool = False) -> "ToolResult":
        return cls(error=reason or "Unknown error", unauthorized=unauthorized)


# ============================================================
# PARSING MODEL OUTPUT
# ============================================================

# Function names exposed to the model -> decision builder
TERMINAL_TOOL_NAME = "render_html"

TOOL_NAME_TO_KIND: Dict[str, ToolKind] = {
    "list_emails": ToolKind.LIST_MAIL,
    "get_email_details": ToolKind.READ_MAIL,
    "send_email": ToolKind.SEND_MAIL,
    "delete_email": ToolKind.DELETE_MAIL,
}


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _build_args(kind: ToolKind, args: Dict[str, Any]) -> ToolArgs:
    if kind is ToolKind.LIST_MAIL:
        raw = args.get("max_results", args.get("maxResults"))
        if raw in (None, ""):
            return ListMailArgs()
        try:
            max_results = int(raw)
        except (TypeError, ValueError):
            raise DecisionUnavailable(f"max_results must be an integer, got {raw!r}")
        if max_results <= 0:
            return ListMailArgs()
        return ListMailArgs(max_results=min(max_results, MAX_LIST_RESULTS))
    if kind is ToolKind.READ_MAIL:
        return ReadMailArgs(id=_as_text(args.get("id")))
    if kind is ToolKind.SEND_MAIL:
        # Body keeps its whitespace; only to/subject are trimmed
        body = args.get("body")
        return SendMailArgs(
            to=_as_text(args.get("to")),
            subject=_as_text(args.get("subject")),
            body="" if body is None else str(body),
        )
    if kind is ToolKind.DELETE_MAIL:
        return DeleteMailArgs(id=_as_text(args.get("id")))
    raise UnknownToolKind(f"Unknown tool kind: {kind}")


def parse_decision(name: Optional[str], arguments: Union[str, Dict[str, Any], None]) -> Decision:
    """
    Turn one model function call into a Decision.

    Args:
        name: Function name chosen by the model
        arguments: JSON string (OpenAI) or already-decoded dict (Gemini)

    Returns:
        Terminal or ToolCall

    Raises:
        DecisionUnavailable: missing name, invalid JSON, or unusable arguments
        UnknownToolKind: the function name is not one of ours
    """
    if not name:
        raise DecisionUnavailable("Model returned a tool call without a name")

    if arguments is None or arguments == "":
        args: Dict[str, Any] = {}
    elif isinstance(arguments, str):
        try:
            args = json.loads(arguments)
        except json.JSONDecodeError as e:
            raise DecisionUnavailable(f"Invalid arguments JSON for {name}: {e}")
    else:
        args = dict(arguments)

    if not isinstance(args, dict):
        raise DecisionUnavailable(f"Arguments for {name} must be a JSON object")

    if name == TERMINAL_TOOL_NAME:
        html = args.get("html")
        if not isinstance(html, str) or not html.strip():
            raise DecisionUnavailable("render_html called without html content")
        return Terminal(rendered_output=html)

    kind = TOOL_NAME_TO_KIND.get(name)
    if kind is None:
        raise UnknownToolKind(f"Unknown tool: {name}")

    return ToolCall(kind=kind, args=_build_args(kind, args))
