"""
Gmail tools using Google API.
The mailbox client behind the agent's list/read/send/delete tool calls.
Every operation returns a ToolResult and never raises.
"""
import base64
import logging
from email.message import EmailMessage
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup
from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from auth_utils import AuthState
from config import (
    DEFAULT_MAX_RESULTS,
    GMAIL_SCOPES,
    GOOGLE_CLIENT_ID,
    GOOGLE_CLIENT_SECRET,
    GOOGLE_TOKEN_URL,
)
from decisions import ToolResult

logger = logging.getLogger(__name__)

INBOX_QUERY = "in:inbox"
METADATA_HEADERS = ["Subject", "From", "Date"]
NOT_AUTHENTICATED = "Not authenticated with Gmail. Please log in again."


class GmailTools:
    """Google Gmail API tools for one session."""

    def __init__(self, auth: AuthState, service=None):
        """
        Args:
            auth: Session token state (read here, cleared on 401)
            service: Optional prebuilt Gmail service (tests inject a mock)
        """
        self.auth = auth
        self._service = service
        self._service_token: Optional[str] = None

    @property
    def service(self):
        """Gmail service for the current access token (rebuilt when the token changes)."""
        if self._service is not None and self._service_token is None:
            # Injected service
            return self._service
        if not self.auth.is_authenticated:
            return None
        if self._service is None or self._service_token != self.auth.access_token:
            creds = Credentials(
                token=self.auth.access_token,
                refresh_token=self.auth.refresh_token,
                token_uri=GOOGLE_TOKEN_URL,
                client_id=GOOGLE_CLIENT_ID or None,
                client_secret=GOOGLE_CLIENT_SECRET or None,
                scopes=GMAIL_SCOPES,
            )
            self._service = build("gmail", "v1", credentials=creds, cache_discovery=False)
            self._service_token = self.auth.access_token
        return self._service

    def _unavailable(self) -> Optional[ToolResult]:
        """Failed result when there is no usable Gmail service, else None."""
        if not self.auth.is_authenticated:
            return ToolResult.failed(NOT_AUTHENTICATED, unauthorized=True)
        try:
            if self.service is None:
                return ToolResult.failed(NOT_AUTHENTICATED, unauthorized=True)
        except Exception as e:
            return self._failure(e, "Failed to connect to Gmail")
        return None

    def _failure(self, error: Exception, message: str) -> ToolResult:
        """Convert an API error to a failed result, dropping tokens on auth errors."""
        if _is_unauthorized(error):
            logger.error(f"{message}: auth error (token might be expired)")
            self.auth.clear()
            self._service = None
            self._service_token = None
            return ToolResult.failed(f"{message}: {NOT_AUTHENTICATED}", unauthorized=True)
        logger.error(f"{message}: {error}")
        return ToolResult.failed(message)

    # ============================================================
    # OPERATIONS
    # ============================================================

    def list_recent(self, max_results: int = DEFAULT_MAX_RESULTS) -> ToolResult:
        """List inbox messages with Subject/From/Date metadata."""
        logger.info(f"list_recent called (max_results={max_results})")
        unavailable = self._unavailable()
        if unavailable is not None:
            return unavailable

        try:
            list_response = self.service.users().messages().list(
                userId="me", maxResults=max_results, q=INBOX_QUERY
            ).execute()
            messages = list_response.get("messages", [])
            if not messages:
                logger.info("No messages found")
                return ToolResult.succeeded([])

            emails = []
            for message in messages:
                summary = self._fetch_metadata(message.get("id"))
                if summary is not None:
                    emails.append(summary)

            logger.info(f"list_recent returning {len(emails)} of {len(messages)} messages")
            return ToolResult.succeeded(emails)
        except Exception as e:
            return self._failure(e, "Failed to fetch email list")

    def _fetch_metadata(self, message_id: Optional[str]) -> Optional[Dict[str, Any]]:
        """Metadata for one message; None to skip it. Auth errors propagate."""
        if not message_id:
            return None
        try:
            detail = self.service.users().messages().get(
                userId="me", id=message_id, format="metadata", metadataHeaders=METADATA_HEADERS
            ).execute()
        except Exception as e:
            if _is_unauthorized(e):
                raise
            logger.warning(f"Error fetching metadata for message {message_id}: {e}")
            return None

        headers = detail.get("payload", {}).get("headers", [])
        return {
            "id": message_id,
            "subject": _get_header(headers, "Subject") or "No Subject",
            "from": _get_header(headers, "From") or "No Sender",
            "date": _get_header(headers, "Date") or "No Date",
            "snippet": detail.get("snippet", ""),
        }

    def read(self, message_id: str) -> ToolResult:
        """Fetch a full message and decode its body (plain text preferred)."""
        logger.info(f"read called for ID: {message_id}")
        if not message_id:
            return ToolResult.failed("No message ID given")
        unavailable = self._unavailable()
        if unavailable is not None:
            return unavailable

        try:
            detail = self.service.users().messages().get(
                userId="me", id=message_id, format="full"
            ).execute()
        except Exception as e:
            return self._failure(e, f"Failed to fetch email details for ID {message_id}")

        payload = detail.get("payload") or {}
        headers = payload.get("headers")
        if not headers:
            logger.error(f"No payload or headers found for message {message_id}")
            return ToolResult.failed(f"Message {message_id} has no headers")

        body = _extract_body(payload)
        return ToolResult.succeeded({
            "id": message_id,
            "subject": _get_header(headers, "Subject") or "No Subject",
            "from": _get_header(headers, "From") or "No Sender",
            "to": _get_header(headers, "To") or "No Recipient",
            "date": _get_header(headers, "Date") or "No Date",
            "body": body or "No body content found or could not parse.",
            "snippet": detail.get("snippet", ""),
        })

    def send(self, to: str, subject: str, body: str) -> ToolResult:
        """Send a plain-text email."""
        logger.info(f"send called to: {to}, subject: {subject}")
        missing = [name for name, value in (("to", to), ("subject", subject), ("body", body)) if not value]
        if missing:
            logger.error(f"send called with missing parameters: {missing}")
            return ToolResult.failed(f"Missing required fields: {', '.join(missing)}")
        unsafe = [name for name, value in (("to", to), ("subject", subject)) if _has_line_break(value)]
        if unsafe:
            logger.error(f"send rejected line breaks in header fields: {unsafe}")
            return ToolResult.failed(f"Line breaks are not allowed in: {', '.join(unsafe)}")
        unavailable = self._unavailable()
        if unavailable is not None:
            return unavailable

        try:
            result = self.service.users().messages().send(
                userId="me", body={"raw": build_raw_message(to, subject, body)}
            ).execute()
        except Exception as e:
            return self._failure(e, "Failed to send email")

        logger.info(f"send successful, message ID: {result.get('id')}")
        return ToolResult.succeeded({"message_id": result.get("id"), "to": to, "subject": subject})

    def trash(self, message_id: str) -> ToolResult:
        """Move a message to trash (not a permanent delete)."""
        logger.info(f"trash called for ID: {message_id}")
        if not message_id:
            return ToolResult.failed("No message ID given")
        unavailable = self._unavailable()
        if unavailable is not None:
            return unavailable

        try:
            self.service.users().messages().trash(userId="me", id=message_id).execute()
        except Exception as e:
            return self._failure(e, f"Failed to delete email with ID {message_id}")

        logger.info(f"trash successful for ID: {message_id}")
        return ToolResult.succeeded({"id": message_id, "status": "Moved to trash"})


# ============================================================
# HELPERS
# ============================================================

def _is_unauthorized(error: Exception) -> bool:
    if isinstance(error, RefreshError):
        return True
    if isinstance(error, HttpError):
        return getattr(error.resp, "status", None) == 401
    return False


def _get_header(headers: List[Dict], name: str) -> str:
    """Helper to extract header value."""
    for h in headers or []:
        if h.get("name", "").lower() == name.lower():
            return h.get("value", "")
    return ""


def _decode(data: str) -> str:
    # Gmail strips base64 padding
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")


def _find_part(payload: Dict, mime_type: str) -> Optional[str]:
    """Depth-first search for the first part of `mime_type` with data."""
    for part in payload.get("parts", []) or []:
        if part.get("mimeType") == mime_type and part.get("body", {}).get("data"):
            return part["body"]["data"]
        if part.get("parts"):
            nested = _find_part(part, mime_type)
            if nested:
                return nested
    return None


def _extract_body(payload: Dict) -> str:
    """Plain text if available, otherwise HTML reduced to text."""
    if payload.get("parts"):
        data = _find_part(payload, "text/plain")
        if data:
            return _decode(data)
        data = _find_part(payload, "text/html")
        if data:
            return _html_to_text(_decode(data))
        return ""

    # Single part message
    data = payload.get("body", {}).get("data")
    if not data:
        return ""
    decoded = _decode(data)
    if payload.get("mimeType") == "text/html":
        return _html_to_text(decoded)
    return decoded


def _html_to_text(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    return soup.get_text("\n").strip()


def _has_line_break(value: str) -> bool:
    return "\r" in value or "\n" in value


def build_raw_message(to: str, subject: str, body: str) -> str:
    """
    RFC 822 message, base64url encoded without padding, as Gmail's `raw` expects.

    Raises ValueError if `to` or `subject` contains a line break.
    """
    message = EmailMessage()
    message["To"] = to
    message["Subject"] = subject
    message.set_content(body)
    return base64.urlsafe_b64encode(message.as_bytes()).decode("ascii").rstrip("=")
