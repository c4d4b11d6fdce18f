"""Tests for the LLM brain adapters and the email decision source."""
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from conversation import ConversationContext
from decisions import DecisionUnavailable, ListMailArgs, Terminal, ToolCall, ToolKind, UnknownToolKind
from llm_brain import (
    SYSTEM_PROMPT,
    TOOL_SCHEMAS,
    EmailDecisionSource,
    LLMBrain,
    LLMResponse,
    OpenAIBrain,
    ToolCallRequest,
    _to_gemini_schema,
    get_llm_brain,
)


class _FakeBrain(LLMBrain):
    def __init__(self, response: LLMResponse):
        self.response = response
        self.calls = []

    def step(self, messages, tool_schemas):
        self.calls.append((messages, tool_schemas))
        return self.response


def _openai_response(tool_calls, content=None):
    message = SimpleNamespace(
        content=content,
        tool_calls=[
            SimpleNamespace(function=SimpleNamespace(name=name, arguments=args))
            for name, args in tool_calls
        ] or None,
    )
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def test_openai_brain_forces_a_single_tool_call():
    client = MagicMock()
    client.chat.completions.create.return_value = _openai_response([("list_emails", '{"max_results": 5}')])
    brain = OpenAIBrain(model="gpt-4o-mini", temperature=0.0, client=client)

    response = brain.step([{"role": "user", "content": "hi"}], TOOL_SCHEMAS)

    assert response.tool_calls == [ToolCallRequest(name="list_emails", arguments='{"max_results": 5}')]
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["tool_choice"] == "required"
    assert kwargs["parallel_tool_calls"] is False
    assert kwargs["tools"] is TOOL_SCHEMAS


def test_openai_brain_without_tools_sends_no_tool_options():
    client = MagicMock()
    client.chat.completions.create.return_value = _openai_response([], content="hello")
    brain = OpenAIBrain(client=client)

    response = brain.step([{"role": "user", "content": "hi"}], [])

    assert response.content == "hello"
    assert response.tool_calls == []
    assert "tools" not in client.chat.completions.create.call_args.kwargs


def test_decision_source_sends_system_prompt_and_context():
    brain = _FakeBrain(LLMResponse(content=None, tool_calls=[ToolCallRequest("list_emails", "{}")]))
    context = ConversationContext()
    context.add_user("Initial inbox request")

    decision = EmailDecisionSource(brain=brain).decide(context)

    assert decision == ToolCall(kind=ToolKind.LIST_MAIL, args=ListMailArgs(max_results=15))
    messages, schemas = brain.calls[0]
    assert messages[0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert messages[1] == {"role": "user", "content": "Initial inbox request"}
    assert schemas is TOOL_SCHEMAS


def test_decision_source_returns_batch_for_several_calls():
    brain = _FakeBrain(LLMResponse(content=None, tool_calls=[
        ToolCallRequest("list_emails", "{}"),
        ToolCallRequest("render_html", {"html": "<div/>"}),
    ]))

    decisions = EmailDecisionSource(brain=brain).decide(ConversationContext())

    assert decisions == [
        ToolCall(kind=ToolKind.LIST_MAIL, args=ListMailArgs()),
        Terminal(rendered_output="<div/>"),
    ]


def test_decision_source_text_only_is_unavailable():
    brain = _FakeBrain(LLMResponse(content="Here is your inbox", tool_calls=[]))
    with pytest.raises(DecisionUnavailable):
        EmailDecisionSource(brain=brain).decide(ConversationContext())


def test_decision_source_unknown_tool():
    brain = _FakeBrain(LLMResponse(content=None, tool_calls=[ToolCallRequest("archive", "{}")]))
    with pytest.raises(UnknownToolKind):
        EmailDecisionSource(brain=brain).decide(ConversationContext())


def test_tool_schema_names_match_decisions():
    names = {schema["function"]["name"] for schema in TOOL_SCHEMAS}
    assert names == {"render_html", "list_emails", "get_email_details", "send_email", "delete_email"}


def test_gemini_schema_conversion():
    converted = _to_gemini_schema(TOOL_SCHEMAS[3]["function"]["parameters"])
    assert converted["type"] == "OBJECT"
    assert converted["properties"]["to"] == {"type": "STRING"}
    assert converted["required"] == ["to", "subject", "body"]


def test_unknown_provider():
    with pytest.raises(ValueError):
        get_llm_brain(provider="llama")


class _TimingOutBrain(LLMBrain):
    def step(self, messages, tool_schemas):
        raise TimeoutError("provider timed out")


def test_decision_source_wraps_provider_errors():
    with pytest.raises(DecisionUnavailable) as excinfo:
        EmailDecisionSource(brain=_TimingOutBrain()).decide(ConversationContext())
    assert isinstance(excinfo.value.__cause__, TimeoutError)


def test_decision_source_wraps_unknown_provider(monkeypatch):
    monkeypatch.setattr("llm_brain.LLM_PROVIDER", "llama")
    with pytest.raises(DecisionUnavailable):
        EmailDecisionSource().decide(ConversationContext())
