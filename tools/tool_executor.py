"""
Tool executor for the email client agent.

Single dispatcher that:
1. Maps each ToolKind to one mailbox operation
2. Calls the mailbox client with the decision's typed arguments
3. Returns the ToolResult unchanged (failures are values, not exceptions)

An unregistered kind is a protocol violation and raises UnknownToolKind.
"""
import logging
from typing import Callable, Dict

from config import VERBOSE_MODE
from decisions import (
    DecisionUnavailable,
    DeleteMailArgs,
    ListMailArgs,
    ReadMailArgs,
    SendMailArgs,
    ToolCall,
    ToolKind,
    ToolResult,
    UnknownToolKind,
)

logger = logging.getLogger(__name__)


class ToolExecutor:
    """
    Executes tool calls against a mailbox client.

    The mailbox only needs list_recent / read / send / trash, so tests can
    pass a fake.
    """

    def __init__(self, mailbox):
        self.mailbox = mailbox
        self._handlers: Dict[ToolKind, Callable[[ToolCall], ToolResult]] = {
            ToolKind.LIST_MAIL: self._tool_list_mail,
            ToolKind.READ_MAIL: self._tool_read_mail,
            ToolKind.SEND_MAIL: self._tool_send_mail,
            ToolKind.DELETE_MAIL: self._tool_delete_mail,
        }

    def execute(self, call: ToolCall) -> ToolResult:
        """
        Execute one tool call.

        Raises:
            UnknownToolKind: no handler registered for call.kind
        """
        handler = self._handlers.get(call.kind)
        if handler is None:
            raise UnknownToolKind(f"Unknown tool kind: {call.kind!r}")

        logger.info(f"Executing {call.kind.display_name}")
        result = handler(call)

        if result.is_ok:
            if VERBOSE_MODE:
                logger.info(f"{call.kind.display_name} payload: {result.payload}")
        else:
            logger.warning(f"{call.kind.display_name} failed: {result.error}")
        return result

    # ============================================================
    # EMAIL OPERATIONS
    # ============================================================

    def _tool_list_mail(self, call: ToolCall) -> ToolResult:
        args = _expect(call, ListMailArgs)
        return self.mailbox.list_recent(args.max_results)

    def _tool_read_mail(self, call: ToolCall) -> ToolResult:
        args = _expect(call, ReadMailArgs)
        return self.mailbox.read(args.id)

    def _tool_send_mail(self, call: ToolCall) -> ToolResult:
        args = _expect(call, SendMailArgs)
        return self.mailbox.send(args.to, args.subject, args.body)

    def _tool_delete_mail(self, call: ToolCall) -> ToolResult:
        args = _expect(call, DeleteMailArgs)
        return self.mailbox.trash(args.id)


def _expect(call: ToolCall, args_type):
    if not isinstance(call.args, args_type):
        raise DecisionUnavailable(
            f"{call.kind.display_name} called with {type(call.args).__name__}, expected {args_type.__name__}"
        )
    return call.args
