"""
Conversation context for the email client agent.

The context is the only memory the decision source sees:
- Turns (user interactions, tool summaries, terminal markers) in order
- The latest repetition warning per tool kind

Architecture:
- A ring buffer keeps the last N turns, so prompts stay within model limits
- Warnings are kept separately and rendered after the turns, latest only

Usage:
    from conversation import ConversationContext

    context = ConversationContext(max_turns=40)
    context.add_user("User clicked: Inbox")
    context.add_assistant("Tool Call: ListMail\\nResult: No data found.")

    messages = context.to_messages(system_prompt="...")
"""
import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, List, Optional

from config import CONTEXT_MAX_TURNS, MAX_TURN_CHARS

logger = logging.getLogger(__name__)

USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"

TRUNCATION_SUFFIX = "... [truncated]"


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class Turn:
    """One entry in the conversation."""
    role: str  # "user" or "assistant"
    content: str


# ============================================================
# CONVERSATION CONTEXT
# ============================================================

class ConversationContext:
    """
    Ordered, bounded conversation history for one session.

    Turns are only ever appended; once more than max_turns exist the oldest
    ones fall off the front.
    """

    def __init__(self, max_turns: int = CONTEXT_MAX_TURNS, max_turn_chars: int = MAX_TURN_CHARS):
        if max_turns < 1:
            raise ValueError("max_turns must be at least 1")
        self.max_turns = max_turns
        self.max_turn_chars = max_turn_chars
        self._turns: Deque[Turn] = deque(maxlen=max_turns)
        self._warnings: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._turns)

    @property
    def turns(self) -> List[Turn]:
        return list(self._turns)

    @property
    def warnings(self) -> List[str]:
        return list(self._warnings.values())

    def add_user(self, content: str) -> Turn:
        return self._append(Turn(role=USER_ROLE, content=content))

    def add_assistant(self, content: str) -> Turn:
        return self._append(Turn(role=ASSISTANT_ROLE, content=content))

    def _append(self, turn: Turn) -> Turn:
        if len(self._turns) == self.max_turns:
            logger.debug(f"Context full ({self.max_turns} turns), dropping oldest turn")
        self._turns.append(turn)
        return turn

    # --------------------------------------------------------
    # Repetition warnings
    # --------------------------------------------------------

    def set_warning(self, key: str, warning: str):
        """Store the warning for a tool kind, replacing any earlier one."""
        self._warnings[key] = warning

    def keep_warnings_for(self, key: Optional[str]):
        """Drop warnings for every tool kind except `key`."""
        self._warnings = {k: v for k, v in self._warnings.items() if k == key}

    def clear_warnings(self):
        self._warnings.clear()

    # --------------------------------------------------------
    # Rendering
    # --------------------------------------------------------

    def to_messages(self, system_prompt: Optional[str] = None) -> List[Dict[str, str]]:
        """
        Render the context as chat messages for the decision source.

        Returns:
            [{"role": "system", ...}, {"role": "user"/"assistant", ...}, ...]
            with current warnings appended as a final system message.
        """
        messages: List[Dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})

        for turn in self._turns:
            messages.append({"role": turn.role, "content": self._truncate(turn.content)})

        if self._warnings:
            messages.append({"role": "system", "content": "\n".join(self._warnings.values())})

        return messages

    def format_for_prompt(self) -> str:
        """Plain-text transcript, used by providers without chat roles and for debugging."""
        formatted = []
        for turn in self._turns:
            prefix = "User" if turn.role == USER_ROLE else "Assistant"
            formatted.append(f"{prefix}: {self._truncate(turn.content)}")
        formatted.extend(self._warnings.values())
        return "\n\n".join(formatted)

    def _truncate(self, content: str) -> str:
        if len(content) > self.max_turn_chars:
            return content[:self.max_turn_chars] + TRUNCATION_SUFFIX
        return content
