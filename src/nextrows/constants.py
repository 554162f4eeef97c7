"""
Project-wide constants for the NextRows client
"""  # noqa: D200, D212, D415

# ==============================================================================
# Service Endpoints
# ==============================================================================

DEFAULT_BASE_URL = "https://api.nextrows.com"
DEFAULT_TIMEOUT_MS = 30_000

EXTRACT_PATH = "/v1/extract"
RUN_APP_JSON_PATH = "/v1/apps/run/json"
CREDITS_PATH = "/v1/credits"

# Token issuance lives on a separate host with a mock and a live variant
TOKEN_LIVE_BASE_URL = "https://api.kiwoom.com"
TOKEN_MOCK_BASE_URL = "https://mockapi.kiwoom.com"
TOKEN_PATH = "/oauth2/token"
GRANT_TYPE_CLIENT_CREDENTIALS = "client_credentials"

# ==============================================================================
# Request Limits
# ==============================================================================

MAX_EXTRACT_SOURCES = 20
MAX_PROMPT_LENGTH = 2000

# ==============================================================================
# Wire Headers
# ==============================================================================

JSON_CONTENT_TYPE = "application/json"
USER_AGENT_PREFIX = "nextrows-python"
ENV_PREFIX = "NEXTROWS_"
