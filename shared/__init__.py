"""
Shared utilities for Azure Functions.
"""
import json
import logging
import sys
import os

# Add parent directory to path so we can import from main project
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import azure.functions as func

from config import DEFAULT_SESSION_ID, LOG_LEVEL


# CORS headers for browser access
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, X-Session-Id",
    "Access-Control-Max-Age": "86400",
}

SESSION_HEADER = "X-Session-Id"


def create_response(data: dict, status_code: int = 200) -> func.HttpResponse:
    """Create a JSON HTTP response."""
    return func.HttpResponse(
        body=json.dumps(data, default=str),
        status_code=status_code,
        mimetype="application/json",
        headers=CORS_HEADERS
    )


def create_error_response(message: str, status_code: int = 400, details: dict = None) -> func.HttpResponse:
    """Create an error HTTP response."""
    error_body = {"error": message}
    if details:
        error_body["details"] = details
    return func.HttpResponse(
        body=json.dumps(error_body),
        status_code=status_code,
        mimetype="application/json",
        headers=CORS_HEADERS
    )


def create_redirect(location: str) -> func.HttpResponse:
    """Create a 302 redirect."""
    return func.HttpResponse(status_code=302, headers={"Location": location})


def create_preflight_response() -> func.HttpResponse:
    """Answer a CORS preflight request."""
    return func.HttpResponse(body="", status_code=204, headers=CORS_HEADERS)


def parse_request_body(req: func.HttpRequest) -> dict:
    """
    Parse JSON body from request.
    Returns empty dict if no body or invalid JSON.
    """
    try:
        body = req.get_json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def get_session_id(req: func.HttpRequest, body: dict = None) -> str:
    """Session id from the JSON body, the X-Session-Id header, or the query string."""
    session_id = (body or {}).get("session_id")
    if not session_id:
        session_id = req.headers.get(SESSION_HEADER) or req.params.get("session_id")
    if not isinstance(session_id, str) or not session_id.strip():
        return DEFAULT_SESSION_ID
    return session_id.strip()


def setup_logging():
    """Configure logging for Azure Functions."""
    logging.basicConfig(
        level=LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    return logging.getLogger(__name__)


# Session store exports
from shared.session_store import (
    AgentSession,
    get_or_create_session,
    get_session,
    end_session,
    evict_expired,
)
