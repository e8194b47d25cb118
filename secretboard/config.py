#  Secret Board - Configuration
#
#  Loads config.json and provides typed access to all settings.
#  Dot-notation path lookup: cfg("session.cookie_name")
#
#  Depends on: config.json
#  Used by:    all secretboard modules

import json
import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Path resolution
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_PATH = PROJECT_ROOT / "config.json"
DATA_DIR = PROJECT_ROOT / "data"

# ---------------------------------------------------------------------------
# Load config
# ---------------------------------------------------------------------------

_config: dict = {}


def _load_config(path: Path | None = None):
    """Load configuration from JSON file (internal — called once at import time).

    Module-level constants below are snapshots from _config.
    Do not call this function after import — constants won't update.
    """
    global _config
    config_path = path or CONFIG_PATH
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}. "
            "Copy config.example.json to config.json."
        )
    with open(config_path) as f:
        _config = json.load(f)


# Auto-load if config exists at import time
if CONFIG_PATH.exists():
    _load_config()


def cfg(path: str, default=None):
    """Get a config value by dot-notation path.

    Example: cfg("session.ttl_days") -> 14
    """
    keys = path.split(".")
    val = _config
    for key in keys:
        if isinstance(val, dict) and key in val:
            val = val[key]
        else:
            return default
    return val


# ---------------------------------------------------------------------------
# Convenience constants
# ---------------------------------------------------------------------------

HOST = cfg("server.host", "0.0.0.0")
PORT = int(os.environ.get("PORT") or cfg("server.port", 3000))
CORS_ORIGINS = cfg("server.cors_origins", [
    "http://localhost:5173",
    f"http://localhost:{PORT}",
    "http://127.0.0.1:5173",
    f"http://127.0.0.1:{PORT}",
])
POST_LOGIN_REDIRECT = cfg("server.post_login_redirect", "/secrets")

# Storage
DB_PATH = Path(cfg("database.path", str(DATA_DIR / "secretboard.db")))

# Auth
AUTH_SECRET_KEY = os.environ.get("SESSION_SECRET") or cfg("auth.secret_key", "")
AUTH_ALGORITHM = cfg("auth.algorithm", "HS256")
AUTH_BCRYPT_ROUNDS = cfg("auth.bcrypt_rounds", 10)
AUTH_OAUTH_STATE_TTL_SECONDS = cfg("auth.oauth_state_ttl_seconds", 300)
AUTH_OAUTH_PROVIDERS: list[dict] = list(cfg("auth.oauth_providers", []))

# Google credentials may come from the environment instead of config.json
_GOOGLE_CLIENT_ID = os.environ.get("CLIENT_ID", "")
if _GOOGLE_CLIENT_ID and not any(p.get("name") == "google" for p in AUTH_OAUTH_PROVIDERS):
    AUTH_OAUTH_PROVIDERS.append({
        "name": "google",
        "display_name": "Google",
        "issuer": "https://accounts.google.com",
        "client_id": _GOOGLE_CLIENT_ID,
        "client_secret": os.environ.get("CLIENT_SECRET", ""),
        "redirect_uri": os.environ.get("GOOGLE_CALLBACK_URL", ""),
        "scopes": ["openid", "email", "profile"],
    })

# Sessions
SESSION_COOKIE_NAME = cfg("session.cookie_name", "myAppSession")
SESSION_TTL_DAYS = cfg("session.ttl_days", 14)
SESSION_COOKIE_SECURE = cfg("session.cookie_secure", False)
SESSION_DB_PATH = Path(cfg("session.db_path", str(DATA_DIR / "sessions.db")))


# ---------------------------------------------------------------------------
# Startup validation
# ---------------------------------------------------------------------------

def validate_config():
    """Validate critical config values. Call during app startup (not at import time).

    Raises ConfigError for fatal issues, logs warnings for non-fatal ones.
    """
    import logging
    _logger = logging.getLogger("secretboard.config")

    # Fatal: state-token signing key must be non-empty and at least 32 characters
    if not AUTH_SECRET_KEY or len(AUTH_SECRET_KEY) < 32:
        raise ConfigError(
            "FATAL: auth.secret_key (or SESSION_SECRET) is missing or too short "
            "(must be at least 32 characters)"
        )

    # Fatal: port must be valid
    if not isinstance(PORT, int) or not (1 <= PORT <= 65535):
        raise ConfigError(f"server.port must be 1-65535, got {PORT}")

    # Fatal: bcrypt work factor must be in the range bcrypt accepts
    if not isinstance(AUTH_BCRYPT_ROUNDS, int) or not (4 <= AUTH_BCRYPT_ROUNDS <= 31):
        raise ConfigError(f"auth.bcrypt_rounds must be 4-31, got {AUTH_BCRYPT_ROUNDS}")

    # Fatal: session lifetime must be positive
    if not isinstance(SESSION_TTL_DAYS, (int, float)) or SESSION_TTL_DAYS <= 0:
        raise ConfigError(f"session.ttl_days must be > 0, got {SESSION_TTL_DAYS}")

    # Fatal: the two stores must not share a file
    if DB_PATH.resolve() == SESSION_DB_PATH.resolve():
        raise ConfigError("database.path and session.db_path must point to different files")

    # Fatal: OAuth providers must have all required fields if configured
    for i, prov in enumerate(AUTH_OAUTH_PROVIDERS):
        name = prov.get("name", f"<index {i}>")
        if not prov.get("name"):
            raise ConfigError(f"OAuth provider at index {i} is missing required 'name' field")
        for field in ("issuer", "client_id", "client_secret", "redirect_uri"):
            if not prov.get(field):
                raise ConfigError(
                    f"OAuth provider '{name}' is missing required '{field}' field"
                )

    # Fatal: CORS origins must be valid URLs
    for origin in CORS_ORIGINS:
        if not isinstance(origin, str):
            raise ConfigError(f"CORS origin must be a string, got {type(origin).__name__}")
        if origin == "*":
            _logger.warning("CORS origin '*' allows all origins — not recommended for production")
        elif not origin.startswith(("http://", "https://")):
            raise ConfigError(
                f"CORS origin must start with http:// or https://, got '{origin}'"
            )

    # Warning: plain-HTTP session cookies
    if not SESSION_COOKIE_SECURE:
        _logger.warning(
            "session.cookie_secure is false; session cookies will be sent over plain HTTP"
        )

    # Warning: no OAuth login available
    if not AUTH_OAUTH_PROVIDERS:
        _logger.warning("No OAuth providers configured, only password login is available")


class ConfigError(Exception):
    """Raised when critical configuration is invalid."""
