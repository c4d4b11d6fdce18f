"""
Azure Function: logout

HTTP Trigger that ends a session, dropping its conversation and Gmail tokens.
"""
import logging
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import azure.functions as func

from shared import create_preflight_response, create_response, end_session, get_session_id, parse_request_body


def main(req: func.HttpRequest) -> func.HttpResponse:
    """
    POST Body:
    {
        "session_id": "abc123"  // Optional, also accepted as X-Session-Id header
    }

    Returns:
    {
        "session_id": "abc123",
        "ended": true
    }
    """
    if req.method == "OPTIONS":
        return create_preflight_response()

    session_id = get_session_id(req, parse_request_body(req))
    ended = end_session(session_id)
    logging.info(f'logout: session={session_id} ended={ended}')

    return create_response({"session_id": session_id, "ended": ended})
