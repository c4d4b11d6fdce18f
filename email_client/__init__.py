"""
Azure Function: email_client (route: /api/llm)

HTTP Trigger that runs the email client agent for one user interaction
(a click or the initial inbox request) and returns the HTML to display.
"""
import logging
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import azure.functions as func

from shared import (
    AgentSession,
    create_error_response,
    create_preflight_response,
    create_response,
    get_or_create_session,
    get_session_id,
    parse_request_body,
    setup_logging,
)
from decisions import AgentFailure
from email_agent import EmailClientAgent
from llm_brain import EmailDecisionSource
from tools.gmail_tools import GmailTools
from tools.tool_executor import ToolExecutor

setup_logging()

_decision_source = None


def get_decision_source() -> EmailDecisionSource:
    """Shared, stateless decision source (the brain is loaded on first use)."""
    global _decision_source
    if _decision_source is None:
        _decision_source = EmailDecisionSource()
    return _decision_source


def build_agent(session: AgentSession, decision_source=None) -> EmailClientAgent:
    """Agent bound to the session's context and Gmail tokens."""
    return EmailClientAgent(
        decision_source=decision_source or get_decision_source(),
        executor=ToolExecutor(GmailTools(session.auth)),
        context=session.context,
    )


def main(req: func.HttpRequest) -> func.HttpResponse:
    """
    Run the agent for one interaction.

    POST Body:
    {
        "target": "User clicked: Inbox",
        "session_id": "abc123"  // Optional, also accepted as X-Session-Id header
    }

    Returns:
    {
        "html": "<div>...</div>"
    }
    """
    logging.info('email_client: Processing request')

    if req.method == "OPTIONS":
        return create_preflight_response()

    body = parse_request_body(req)
    target = body.get("target")
    if not target or not isinstance(target, str):
        logging.error(f"email_client: Invalid or missing 'target' in request body: {body}")
        return create_error_response("Missing or invalid 'target' field")

    session = get_or_create_session(get_session_id(req, body))
    logging.info(f'email_client: session={session.session_id} interaction="{target[:80]}"')

    try:
        with session.lock:
            html = build_agent(session).run(target)
    except AgentFailure as e:
        logging.error(f'email_client: Agent failed - {type(e).__name__}: {e}')
        return create_error_response("Failed to generate HTML content", status_code=500)
    except Exception as e:
        logging.exception(f'email_client: Unexpected error - {e}')
        return create_error_response("Failed to generate HTML content", status_code=500)

    return create_response({"html": html})
