"""
Azure Function: oauth2callback

HTTP Trigger Google redirects to after consent. Exchanges the authorization
code for tokens and stores them on the session named by `state`.
"""
import logging
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import azure.functions as func

from shared import create_error_response, create_redirect, get_or_create_session
from auth_utils import exchange_google_code
from config import DEFAULT_SESSION_ID

APP_ROOT_REDIRECT = "/?justAuthenticated=true"


def main(req: func.HttpRequest) -> func.HttpResponse:
    """
    Query:
        code: Authorization code from Google
        state: Session id passed through the consent screen
    """
    code = req.params.get("code")
    if not code:
        logging.error('oauth2callback: Called without authorization code')
        return create_error_response("Authorization code missing.")

    logging.info('oauth2callback: Received authorization code, exchanging for tokens')
    tokens = exchange_google_code(code)
    if not tokens or not tokens.get("access_token"):
        return create_error_response("Failed to authenticate with Google.", status_code=500)

    session = get_or_create_session(req.params.get("state") or DEFAULT_SESSION_ID)
    session.auth.update(tokens)
    logging.info(f'oauth2callback: Tokens stored for session {session.session_id}')

    return create_redirect(APP_ROOT_REDIRECT)
