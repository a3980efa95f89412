"""Run configuration: Okta org domain and API token.

Values come from CLI options / environment variables first, then from a
local JSON settings file::

    {
        "OktaDomain": "example.okta.com",
        "ApiToken": "00aBcD..."
    }

Lower-case ``domain`` / ``token`` keys are accepted as well.  Both values
are required; a missing one is a fatal ``ConfigError`` raised before any
API call is made.
"""

import json
import os
from typing import Any, Dict, Optional

DEFAULT_SETTINGS_FILE = "settings.json"

# Accepted spellings for each setting in the JSON file, first match wins
_DOMAIN_KEYS = ("OktaDomain", "domain")
_TOKEN_KEYS = ("ApiToken", "token")
_SCHEME_KEYS = ("AuthScheme", "auth_scheme")

AUTH_SCHEMES = ("SSWS", "Bearer")


class ConfigError(Exception):
    """Required configuration is missing or unreadable."""


class Settings:
    """Resolved configuration for one run.

    Attributes:
        domain:       Org host, e.g. ``example.okta.com`` (or a full ``http://`` URL
                      for local test servers).
        token:        API token / access token.  Never printed.
        auth_scheme:  ``SSWS`` or ``Bearer``.
        source:       Where the values came from, for narration.
    """

    def __init__(self, domain: str, token: str, auth_scheme: str = "SSWS", source: str = ""):
        self.domain = domain
        self.token = token
        self.auth_scheme = auth_scheme
        self.source = source

    @property
    def base_url(self) -> str:
        """Org URL with scheme.  ``https://`` unless an explicit ``http://`` URL was configured."""
        if self.domain.startswith("http://"):
            return self.domain
        return f"https://{self.domain}"

    def __repr__(self):
        return f"Settings(domain={self.domain!r}, auth_scheme={self.auth_scheme!r}, token=***)"


def normalize_domain(value: str) -> str:
    """Strip whitespace, ``https://`` and trailing slashes from a domain value.

    ``http://`` is kept so that plain-HTTP test servers can be targeted.
    """
    value = value.strip().rstrip("/")
    if value.lower().startswith("https://"):
        value = value[len("https://"):]
    return value


def read_settings_file(path: str) -> Dict[str, Any]:
    """Load the JSON settings file, raising ``ConfigError`` if unreadable or not an object."""
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read settings file {path}: {e.strerror or e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Settings file {path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a JSON object")
    return data


def _first(data: Dict[str, Any], keys) -> Optional[str]:
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def load_settings(
    domain: Optional[str] = None,
    token: Optional[str] = None,
    config_path: Optional[str] = None,
    auth_scheme: Optional[str] = None,
) -> Settings:
    """Resolve settings from explicit values, falling back to the settings file.

    Args:
        domain:       Override for the org domain (CLI option or environment).
        token:        Override for the API token (CLI option or environment).
        config_path:  Settings file to read.  When None, ``settings.json`` in the
                      working directory is used if it exists.
        auth_scheme:  Override for the Authorization scheme.

    Raises:
        ConfigError: if domain or token cannot be resolved, the scheme is not
                     one of ``AUTH_SCHEMES``, or an explicit settings file is
                     missing or malformed.
    """
    file_data: Dict[str, Any] = {}
    source = "command line / environment"

    if not (domain and token):
        path = config_path
        if path is None and os.path.exists(DEFAULT_SETTINGS_FILE):
            path = DEFAULT_SETTINGS_FILE
        if path is not None:
            file_data = read_settings_file(path)
            source = path if not (domain or token) else f"command line / environment + {path}"

    domain = domain or _first(file_data, _DOMAIN_KEYS)
    token = token or _first(file_data, _TOKEN_KEYS)
    auth_scheme = auth_scheme or _first(file_data, _SCHEME_KEYS) or "SSWS"

    missing = []
    if not domain or not normalize_domain(domain):
        missing.append("Okta domain (--domain, OKTA_DOMAIN or 'OktaDomain' in settings file)")
    if not token:
        missing.append("API token (--token, OKTA_API_TOKEN or 'ApiToken' in settings file)")
    if missing:
        raise ConfigError("Missing required configuration: " + "; ".join(missing))

    scheme = next((s for s in AUTH_SCHEMES if s.lower() == auth_scheme.lower()), None)
    if scheme is None:
        raise ConfigError(
            f"Unsupported auth scheme {auth_scheme!r}; expected one of {', '.join(AUTH_SCHEMES)}"
        )

    return Settings(normalize_domain(domain), token, auth_scheme=scheme, source=source)
