"""
Student client configuration. Backend URL, HTTP timeout, credential storage.
No secrets in this file; the credential encryption key lives in its own file.
"""
import os

# Same backend the web UI uses; override with EDULENS_BACKEND_URL
BACKEND_URL = os.environ.get("EDULENS_BACKEND_URL", "https://edulens-api.onrender.com").strip().rstrip("/")

# Per-request timeout (seconds) unless a caller passes its own
HTTP_TIMEOUT = float(os.environ.get("EDULENS_HTTP_TIMEOUT", "30"))

# Log every request line at INFO instead of DEBUG
DEBUG_HTTP = os.environ.get("EDULENS_DEBUG_HTTP", "").lower() in ("1", "true", "yes")

# Credential store: SQLite file by default; tests use sqlite:///:memory:
CREDENTIAL_DB_URL = os.environ.get("EDULENS_CREDENTIAL_DB_URL", "sqlite:///./edulens_credentials.db")

# Fernet key file for encrypting stored credentials. Generated on first use if missing.
CREDENTIAL_KEY_PATH = os.environ.get("EDULENS_CREDENTIAL_KEY_PATH", ".edulens_credential_key")

# Installation scope for stored credentials (change to isolate dev/staging/prod)
CREDENTIAL_SERVICE = os.environ.get("EDULENS_CREDENTIAL_SERVICE", "com.edulens.student")

# Refresh endpoint contract
REFRESH_PATH = "/auth/refresh"

# Max bytes of a response body quoted in decoding errors
BODY_SNIPPET_BYTES = 800
