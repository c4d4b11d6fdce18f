"""
Provider-agnostic LLM interface for the email client agent.

Supports multiple LLM providers: OpenAI and Gemini.
The agent loop calls EmailDecisionSource.decide() without knowing which
provider is active; the provider only has to support function calling.

This abstraction allows easy switching between models via environment variables.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from config import (
    GOOGLE_API_KEY,
    LLM_MODEL,
    LLM_PROVIDER,
    LLM_TEMPERATURE,
    OPENAI_API_KEY,
    OPENAI_TIMEOUT_SECONDS,
)
from conversation import ConversationContext
from decisions import Decision, DecisionUnavailable, parse_decision

logger = logging.getLogger(__name__)


@dataclass
class ToolCallRequest:
    """A function call as returned by any provider."""
    name: str
    arguments: Union[str, Dict[str, Any], None]


@dataclass
class LLMResponse:
    """
    Standardized LLM response across all providers.

    Attributes:
        content: The text content of the response (or None if only tool calls)
        tool_calls: Function calls requested by the model (empty if none)
    """
    content: Optional[str]
    tool_calls: List[ToolCallRequest] = field(default_factory=list)


class LLMBrain(ABC):
    """
    Abstract interface for LLM providers.

    Each provider implements the step() method which:
    1. Takes messages and tool schemas
    2. Calls the provider's API, forcing a tool call
    3. Returns standardized LLMResponse
    """

    @abstractmethod
    def step(self, messages: List[Dict], tool_schemas: List[Dict]) -> LLMResponse:
        """
        One inference step with tool calling support.

        Args:
            messages: Chat messages in standard format [{"role": "user", "content": "..."}]
            tool_schemas: Available tools in OpenAI function calling format
        """
        pass


class OpenAIBrain(LLMBrain):
    """OpenAI implementation (GPT-4o, GPT-4o-mini, etc.) using function calling."""

    def __init__(self, model: str = None, temperature: float = None, client=None):
        """
        Args:
            model: Model name (e.g., "gpt-4o-mini"). Defaults to config.
            temperature: Sampling temperature. Defaults to config.
            client: Optional prebuilt OpenAI client
        """
        if client is None:
            from openai import OpenAI

            if not OPENAI_API_KEY:
                raise ValueError("OPENAI_API_KEY is required for OpenAI brain")
            client = OpenAI(api_key=OPENAI_API_KEY, timeout=OPENAI_TIMEOUT_SECONDS)

        self.client = client
        self.model = model or LLM_MODEL
        self.temperature = temperature if temperature is not None else LLM_TEMPERATURE

    def step(self, messages: List[Dict], tool_schemas: List[Dict]) -> LLMResponse:
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
        }
        if tool_schemas:
            kwargs["tools"] = tool_schemas
            kwargs["tool_choice"] = "required"
            # One decision per call
            kwargs["parallel_tool_calls"] = False

        response = self.client.chat.completions.create(**kwargs)
        if not response.choices:
            return LLMResponse(content=None)

        message = response.choices[0].message
        tool_calls = [
            ToolCallRequest(name=tc.function.name, arguments=tc.function.arguments)
            for tc in (message.tool_calls or [])
        ]
        return LLMResponse(content=message.content, tool_calls=tool_calls)


class GeminiBrain(LLMBrain):
    """Google Gemini implementation with function calling support."""

    def __init__(self, model: str = "gemini-2.5-flash", temperature: float = None, client=None):
        if client is None:
            from google import genai

            if not GOOGLE_API_KEY:
                raise ValueError(
                    "GOOGLE_API_KEY environment variable is required for Gemini. "
                    "Get your API key from: https://aistudio.google.com/app/apikey"
                )
            client = genai.Client(api_key=GOOGLE_API_KEY)

        self.client = client
        self.model = model
        self.temperature = temperature if temperature is not None else LLM_TEMPERATURE

    def step(self, messages: List[Dict], tool_schemas: List[Dict]) -> LLMResponse:
        from google.genai import types

        system_parts = [m["content"] for m in messages if m.get("role") == "system" and m.get("content")]
        contents = self._convert_messages(messages)
        if not contents:
            return LLMResponse(content=None)

        config_kwargs: Dict[str, Any] = {"temperature": self.temperature}
        if system_parts:
            config_kwargs["system_instruction"] = "\n\n".join(system_parts)
        if tool_schemas:
            config_kwargs["tools"] = [types.Tool(function_declarations=[
                self._convert_tool_schema(schema) for schema in tool_schemas
            ])]
            config_kwargs["tool_config"] = types.ToolConfig(
                function_calling_config=types.FunctionCallingConfig(mode="ANY")
            )

        response = self.client.models.generate_content(
            model=self.model,
            contents=contents,
            config=types.GenerateContentConfig(**config_kwargs),
        )

        tool_calls = [
            ToolCallRequest(name=fc.name, arguments=dict(fc.args or {}))
            for fc in (response.function_calls or [])
        ]
        content = None
        if not tool_calls:
            content = response.text
        return LLMResponse(content=content, tool_calls=tool_calls)

    def _convert_messages(self, messages: List[Dict]) -> List[Any]:
        """
        Convert OpenAI message format to Gemini contents.

        System messages are passed separately as system_instruction;
        "assistant" becomes "model".
        """
        from google.genai import types

        contents = []
        for msg in messages:
            role = msg.get("role", "user")
            content = msg.get("content", "")
            if role == "system" or not content:
                continue
            gemini_role = "model" if role == "assistant" else "user"
            contents.append(types.Content(role=gemini_role, parts=[types.Part(text=content)]))
        return contents

    def _convert_tool_schema(self, openai_schema: Dict) -> Any:
        """OpenAI {"type": "function", "function": {...}} -> Gemini FunctionDeclaration."""
        from google.genai import types

        func = openai_schema.get("function", {})
        return types.FunctionDeclaration(
            name=func.get("name", ""),
            description=func.get("description", ""),
            parameters=_to_gemini_schema(func.get("parameters", {})),
        )


def _to_gemini_schema(schema: Dict) -> Dict:
    """Gemini schemas use upper-case type names and no additionalProperties."""
    converted: Dict[str, Any] = {}
    for key, value in schema.items():
        if key == "additionalProperties":
            continue
        if key == "type" and isinstance(value, str):
            converted[key] = value.upper()
        elif key == "properties" and isinstance(value, dict):
            converted[key] = {name: _to_gemini_schema(prop) for name, prop in value.items()}
        elif key == "items" and isinstance(value, dict):
            converted[key] = _to_gemini_schema(value)
        else:
            converted[key] = value
    return converted


def get_llm_brain(provider: str = None, model: str = None, temperature: float = None) -> LLMBrain:
    """
    Factory function to get the configured LLM brain.

    Provider selection priority:
    1. Explicit provider argument
    2. LLM_PROVIDER environment variable
    3. Default to "openai"

    Raises:
        ValueError: If provider is unknown or configuration is missing
    """
    provider = (provider or LLM_PROVIDER or "openai").lower()

    if provider == "openai":
        return OpenAIBrain(model=model, temperature=temperature)

    elif provider == "gemini":
        return GeminiBrain(model=model or "gemini-2.5-flash", temperature=temperature)

    else:
        raise ValueError(
            f"Unknown LLM provider: '{provider}'. "
            f"Supported providers: openai, gemini"
        )


# ============================================================
# EMAIL CLIENT DECISION SOURCE
# ============================================================

SYSTEM_PROMPT = """You are simulating a Gmail web client. Every reply you give is either a call to one of the mailbox tools or a complete HTML view rendered with render_html.

The browser shows your HTML inside a single container. When the user clicks anything, you receive "User clicked: <text of the element>". The first message after login is "Initial inbox request".

RULES:
1. Never invent emails. Use list_emails / get_email_details to get real data before rendering it.
2. Tool results appear in the conversation as "Tool Call: ..." summaries. Use the IDs from those summaries for follow-up calls.
3. Only send or delete email when the user clearly asked for it (e.g. clicked a Send or Delete button).
4. As soon as you have the data for the view, call render_html. Don't repeat a tool call whose result you already have.
5. If a tool call failed because the user is not authenticated, render a view asking them to log in again.
6. The HTML is a fragment (no <html>/<head>), uses inline styles, and every clickable element has visible text that identifies it (include the subject or a short label)."""

TOOL_SCHEMAS: List[Dict] = [
    {
        "type": "function",
        "function": {
            "name": "render_html",
            "description": "Render the final HTML view for the user. Ends the turn.",
            "parameters": {
                "type": "object",
                "properties": {
                    "html": {"type": "string", "description": "HTML fragment for the email client view"},
                },
                "required": ["html"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "list_emails",
            "description": "List recent inbox emails (id, subject, from, date, snippet).",
            "parameters": {
                "type": "object",
                "properties": {
                    "max_results": {"type": "integer", "description": "How many emails to list (default 15)"},
                },
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "get_email_details",
            "description": "Fetch one email with its full body.",
            "parameters": {
                "type": "object",
                "properties": {
                    "id": {"type": "string", "description": "Email ID from list_emails"},
                },
                "required": ["id"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "send_email",
            "description": "Send a plain-text email.",
            "parameters": {
                "type": "object",
                "properties": {
                    "to": {"type": "string"},
                    "subject": {"type": "string"},
                    "body": {"type": "string"},
                },
                "required": ["to", "subject", "body"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "delete_email",
            "description": "Move an email to trash.",
            "parameters": {
                "type": "object",
                "properties": {
                    "id": {"type": "string", "description": "Email ID to delete"},
                },
                "required": ["id"],
            },
        },
    },
]


class EmailDecisionSource:
    """
    Maps the conversation context to the next decision using an LLMBrain.

    Returns a single Decision, or a list when the provider answered with
    several function calls at once.
    """

    def __init__(self, brain: LLMBrain = None, system_prompt: str = SYSTEM_PROMPT):
        self._brain = brain
        self.system_prompt = system_prompt

    @property
    def brain(self) -> LLMBrain:
        """Lazy-load the configured brain."""
        if self._brain is None:
            self._brain = get_llm_brain()
        return self._brain

    def decide(self, context: ConversationContext) -> Union[Decision, Sequence[Decision]]:
        messages = context.to_messages(system_prompt=self.system_prompt)
        try:
            response = self.brain.step(messages, TOOL_SCHEMAS)
        except Exception as e:
            logger.error(f"Decision source failed: {type(e).__name__}: {e}")
            raise DecisionUnavailable(f"Decision source failed: {e}") from e

        if not response.tool_calls:
            if response.content:
                logger.warning(f"Model answered with text instead of a tool call: {response.content[:200]}")
            raise DecisionUnavailable("Model returned no tool call")

        decisions = [parse_decision(tc.name, tc.arguments) for tc in response.tool_calls]
        if len(decisions) == 1:
            return decisions[0]
        logger.info(f"Model returned {len(decisions)} decisions in one response")
        return decisions
