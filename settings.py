from pathlib import Path
from config.loader import get_config_loader

# Get the config loader instance
config = get_config_loader()

# Host server configuration
PORT = config.get("PORT", 8765)
LOG_LEVEL = config.get("LOG_LEVEL", "info")
BIND_ADDRESS = config.get("BIND_ADDRESS", "127.0.0.1")

# Remote SpecManager service
API_URL = config.get("SPECMANAGER_API_URL", "https://api.specmanager.ai")
# Versioned prefix for authenticated REST calls (not user configurable)
API_VERSION_PREFIX = "/api/v1"

# Timeout configuration
# Connection timeout: Time to establish TCP connection
CONNECT_TIMEOUT = config.get("CONNECT_TIMEOUT", 10.0)
# Request timeout: Total timeout for REST and auth requests
REQUEST_TIMEOUT = config.get("REQUEST_TIMEOUT", 30.0)

# OAuth (external provider) login
# Seconds to wait for the browser redirect before giving up
OAUTH_TIMEOUT = config.get("OAUTH_TIMEOUT", 300)
# Tells the backend to redirect back into the host rather than a web page
OAUTH_REDIRECT_TARGET = "vscode"

# Realtime event stream
STREAM_MAX_RECONNECT_ATTEMPTS = config.get("STREAM_MAX_RECONNECT_ATTEMPTS", 5)
# Base delay in seconds, doubled for every attempt (1s, 2s, 4s, ...)
STREAM_RECONNECT_BASE_DELAY = config.get("STREAM_RECONNECT_BASE_DELAY", 1.0)

# Persistent storage
SECRETS_FILE = config.get("SECRETS_FILE", str(Path.home() / ".specmanager" / "secrets.json"))
STATE_FILE = config.get("STATE_FILE", str(Path.home() / ".specmanager" / "state.json"))

# UI defaults (user overrides live in the state store)
DEFAULT_LANGUAGE = config.get("DEFAULT_LANGUAGE", "auto")
SOUNDS_ENABLED = config.get("SOUNDS_ENABLED", True)
SOUNDS_VOLUME = config.get("SOUNDS_VOLUME", 0.5)

# UI bridge (WebSocket) access
# Extra browser origins allowed to open the bridge, comma separated; clients sending no Origin are allowed
BRIDGE_ALLOWED_ORIGINS = tuple(o.strip() for o in config.get("BRIDGE_ALLOWED_ORIGINS", "").split(",") if o.strip())
# Shared key the UI must present; a random one is generated per launch when unset
BRIDGE_KEY = config.get("BRIDGE_KEY", "")
