"""Shared fixtures: an in-memory mailbox, a scripted decision source, a clean session store."""
from dataclasses import dataclass, field
from typing import Any, Dict, List

import pytest

from decisions import ToolResult
from shared.session_store import clear_sessions


@dataclass
class FakeMailbox:
    emails: List[Dict[str, Any]] = field(default_factory=list)
    unauthorized: bool = False
    calls: List[tuple] = field(default_factory=list)

    def list_recent(self, max_results=15):
        self.calls.append(("list_recent", max_results))
        if self.unauthorized:
            return ToolResult.failed("Not authenticated with Gmail.", unauthorized=True)
        return ToolResult.succeeded(list(self.emails[:max_results]))

    def read(self, message_id):
        self.calls.append(("read", message_id))
        for email in self.emails:
            if email["id"] == message_id:
                return ToolResult.succeeded(dict(email, body="Hello there"))
        return ToolResult.failed(f"Failed to fetch email details for ID {message_id}")

    def send(self, to, subject, body):
        self.calls.append(("send", to, subject, body))
        if not (to and subject and body):
            return ToolResult.failed("Missing required fields")
        return ToolResult.succeeded({"message_id": "sent-1"})

    def trash(self, message_id):
        self.calls.append(("trash", message_id))
        return ToolResult.succeeded({"id": message_id})


class ScriptedDecisionSource:
    """Returns the given decisions in order and records the messages it saw."""

    def __init__(self, decisions):
        self.decisions = list(decisions)
        self.seen: List[List[Dict[str, str]]] = []

    def decide(self, context):
        self.seen.append(context.to_messages())
        return self.decisions.pop(0)


@pytest.fixture
def inbox():
    return [
        {"id": "m1", "subject": "Hello", "from": "alice@example.com", "date": "Mon, 1 Jan 2024", "snippet": "Hi!"},
        {"id": "m2", "subject": "Invoice", "from": "bob@example.com", "date": "Tue, 2 Jan 2024", "snippet": ""},
    ]


@pytest.fixture
def mailbox(inbox):
    return FakeMailbox(emails=inbox)


@pytest.fixture
def scripted():
    return ScriptedDecisionSource


@pytest.fixture(autouse=True)
def _clean_sessions():
    clear_sessions()
    yield
    clear_sessions()
