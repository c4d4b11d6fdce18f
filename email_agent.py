"""
Email client agent loop.

One run handles one user interaction:
1. Append the interaction to the context as a user turn
2. Ask the decision source for the next decision
3. Tool call -> execute, summarize into the context, ask again
4. Terminal -> record a short marker and return the rendered HTML

Tool calls run strictly one after another: each decision sees every earlier result.
"""
import logging
from collections.abc import Sequence
from typing import Dict, List, Optional

from config import MAX_AGENT_ITERATIONS
from conversation import ConversationContext
from decisions import (
    Decision,
    DecisionUnavailable,
    IterationLimitExceeded,
    Terminal,
    ToolCall,
    ToolKind,
)
from tools.result_formatter import format_result
from tools.tool_executor import ToolExecutor

logger = logging.getLogger(__name__)

TERMINAL_MARKER = "[HTML content generated]"


class RepetitionGuard:
    """
    Counts consecutive calls of the same tool kind within one run.

    Advisory only: it produces warning text for the model, it never stops the loop.
    """

    def __init__(self):
        self.counts: Dict[ToolKind, int] = {}
        self.last_kind: Optional[ToolKind] = None

    def record(self, kind: ToolKind) -> Optional[str]:
        """
        Register a call of `kind`.

        Returns:
            Warning text when `kind` was called more than once in a row, else None
        """
        if kind == self.last_kind:
            self.counts[kind] = self.counts.get(kind, 0) + 1
        else:
            self.counts[kind] = 1
            self.last_kind = kind

        repeat_count = self.counts[kind]
        if repeat_count > 1:
            logger.info(f"Detected repetitive {kind.display_name} calls: {repeat_count} times")
            return (
                f"WARNING: You have already called {kind.display_name} {repeat_count} times in a row. "
                f"You should move on."
            )
        return None


class EmailClientAgent:
    """
    Orchestrates the decision source and the mailbox tools over one context.

    The context belongs to the agent's session and persists across runs;
    repetition counting starts over on every run.
    """

    def __init__(
        self,
        decision_source,
        executor: ToolExecutor,
        context: ConversationContext = None,
        max_iterations: int = MAX_AGENT_ITERATIONS,
    ):
        """
        Args:
            decision_source: Object with decide(context) -> Decision or sequence of Decisions
            executor: Dispatches tool calls to the mailbox
            context: Conversation history (a fresh one if omitted)
            max_iterations: Tool calls allowed per run before giving up
        """
        self.decision_source = decision_source
        self.executor = executor
        self.context = context if context is not None else ConversationContext()
        self.max_iterations = max_iterations

    def run(self, user_interaction: str) -> str:
        """
        Handle one user interaction and return the rendered HTML.

        Raises:
            DecisionUnavailable: the decision source returned nothing usable
            UnknownToolKind: the decision source asked for an unknown tool
            IterationLimitExceeded: too many tool calls without terminal output
        """
        logger.info(f"Calling email client agent with user_interaction: {user_interaction}")
        logger.info(f"Starting agent loop with {len(self.context)} turns of context")
        if len(self.context):
            logger.debug(f"Context so far:\n{self.context.format_for_prompt()}")

        self.context.add_user(user_interaction)
        guard = RepetitionGuard()
        tool_calls = 0

        try:
            while True:
                for decision in self._next_decisions():
                    if isinstance(decision, Terminal):
                        self.context.add_assistant(TERMINAL_MARKER)
                        logger.info(f"Returning HTML content after {tool_calls} tool calls")
                        return decision.rendered_output

                    if tool_calls >= self.max_iterations:
                        raise IterationLimitExceeded(
                            f"No output after {tool_calls} tool calls (limit {self.max_iterations})"
                        )
                    tool_calls += 1
                    self._handle_tool_call(decision, guard)
        finally:
            self.context.clear_warnings()

    def _next_decisions(self) -> List[Decision]:
        """Ask the decision source, normalizing single and batched answers to a list."""
        decision = self.decision_source.decide(self.context)

        if isinstance(decision, (Terminal, ToolCall)):
            return [decision]
        if isinstance(decision, Sequence) and not isinstance(decision, (str, bytes)):
            decisions = list(decision)
            if not decisions:
                raise DecisionUnavailable("Decision source returned an empty batch")
            for item in decisions:
                if not isinstance(item, (Terminal, ToolCall)):
                    raise DecisionUnavailable(f"Unrecognized decision in batch: {item!r}")
            return decisions

        raise DecisionUnavailable(f"Unrecognized decision: {decision!r}")

    def _handle_tool_call(self, call: ToolCall, guard: RepetitionGuard):
        result = self.executor.execute(call)
        summary = format_result(result, call.kind, target=call.target)
        self.context.add_assistant(summary)

        warning = guard.record(call.kind)
        self.context.keep_warnings_for(call.kind.value)
        if warning:
            self.context.set_warning(call.kind.value, warning)
