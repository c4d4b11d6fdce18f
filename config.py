"""
Configuration and environment variables for the email client agent.
"""
import os
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

# ============================================================
# GOOGLE OAUTH / GMAIL CONFIGURATION
# ============================================================
GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID", "")
GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET", "")
REDIRECT_URI = os.getenv("REDIRECT_URI", "http://localhost:7071/api/oauth2callback")

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"

GMAIL_SCOPES = [
    "https://www.googleapis.com/auth/gmail.modify",
]

# ============================================================
# LLM CONFIGURATION
# ============================================================
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY", "")  # For Gemini
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "openai")
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.2"))
OPENAI_TIMEOUT_SECONDS = float(os.getenv("OPENAI_TIMEOUT_SECONDS", "60"))

# ============================================================
# AGENT LOOP
# ============================================================
MAX_AGENT_ITERATIONS = int(os.getenv("MAX_AGENT_ITERATIONS", "10"))  # Tool calls per interaction
CONTEXT_MAX_TURNS = int(os.getenv("CONTEXT_MAX_TURNS", "40"))
MAX_TURN_CHARS = 4000
DEFAULT_MAX_RESULTS = 15  # Inbox page size when the model doesn't ask for one
MAX_LIST_RESULTS = 100  # Upper bound on a model-requested page size

# ============================================================
# SESSIONS
# ============================================================
SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "3600"))
DEFAULT_SESSION_ID = "default"

# ============================================================
# DEBUGGING
# ============================================================
VERBOSE_MODE = os.getenv("VERBOSE_MODE", "false").lower() == "true"  # Log full tool payloads

# ============================================================
# LOGGING
# ============================================================
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
