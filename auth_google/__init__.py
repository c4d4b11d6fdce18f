"""
Azure Function: auth_google (route: /api/auth/google)

HTTP Trigger that starts the Google OAuth flow by redirecting to the consent screen.
"""
import logging
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import azure.functions as func

from shared import create_error_response, create_redirect, get_or_create_session, get_session_id
from auth_utils import get_google_auth_url


def main(req: func.HttpRequest) -> func.HttpResponse:
    """
    Redirect the browser to Google.

    Query:
        session_id: Optional; returned to us in the OAuth `state` parameter
    """
    logging.info('auth_google: Redirecting to Google for authentication')

    session = get_or_create_session(get_session_id(req))

    try:
        auth_url = get_google_auth_url(state=session.session_id)
    except ValueError as e:
        logging.error(f'auth_google: {e}')
        return create_error_response("Google login is not configured", status_code=500)

    return create_redirect(auth_url)
