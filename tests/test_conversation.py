"""Tests for the bounded conversation context."""
import pytest

from conversation import ConversationContext, Turn


def test_turns_keep_order():
    context = ConversationContext()
    context.add_user("User clicked: Inbox")
    context.add_assistant("Tool Call: ListMail")

    assert context.turns == [
        Turn(role="user", content="User clicked: Inbox"),
        Turn(role="assistant", content="Tool Call: ListMail"),
    ]


def test_oldest_turns_drop_when_full():
    context = ConversationContext(max_turns=3)
    for i in range(5):
        context.add_assistant(f"turn {i}")

    assert len(context) == 3
    assert [t.content for t in context.turns] == ["turn 2", "turn 3", "turn 4"]


def test_max_turns_must_be_positive():
    with pytest.raises(ValueError):
        ConversationContext(max_turns=0)


def test_to_messages_with_system_prompt_and_warning():
    context = ConversationContext()
    context.add_user("show inbox")
    context.set_warning("ListMail", "WARNING: ListMail 2 times")

    messages = context.to_messages(system_prompt="You are an email client.")

    assert messages[0] == {"role": "system", "content": "You are an email client."}
    assert messages[1] == {"role": "user", "content": "show inbox"}
    assert messages[-1] == {"role": "system", "content": "WARNING: ListMail 2 times"}


def test_long_turns_are_truncated_when_rendered():
    context = ConversationContext(max_turn_chars=10)
    context.add_assistant("a" * 50)

    rendered = context.to_messages()[0]["content"]
    assert rendered == "a" * 10 + "... [truncated]"
    # Stored turn is untouched
    assert context.turns[0].content == "a" * 50


def test_latest_warning_per_kind():
    context = ConversationContext()
    context.set_warning("ListMail", "first")
    context.set_warning("ListMail", "second")
    context.set_warning("ReadMail", "other")

    context.keep_warnings_for("ListMail")
    assert context.warnings == ["second"]

    context.clear_warnings()
    assert context.warnings == []


def test_format_for_prompt():
    context = ConversationContext()
    context.add_user("hi")
    context.add_assistant("[HTML content generated]")
    assert context.format_for_prompt() == "User: hi\n\nAssistant: [HTML content generated]"
