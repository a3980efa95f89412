"""Thin HTTP abstraction for talking to the Okta management API.

Wraps a single ``requests.Session`` so that every call of one inventory run
shares connection pooling, auth headers, TLS and proxy settings.

Key behaviors:
- API token (``SSWS``) or OAuth access token (``Bearer``) authentication
- TLS options: skip verification, custom CA bundle
- Proxy support
- ``Link: <...>; rel="next"`` cursor parsing for paginated collections
- Non-2xx responses and transport failures surface as ``APIError``
- ``redact_auth()`` helper for safe display of headers

No automatic 429 retry here: the resolvers decide
which call sites get a single wait-and-retry.
"""

import json
from typing import Any, Dict, Optional

import requests


class APIError(Exception):
    """A failed API call.

    Attributes:
        status_code: HTTP status, or ``None`` for transport failures
                     (DNS, connection refused, timeouts, invalid JSON).
        message:     Okta ``errorSummary`` when present, otherwise a short reason.
        url:         The URL that was requested.
        error_code:  Okta ``errorCode`` (e.g. ``E0000007``) when present.
    """

    def __init__(self, status_code: Optional[int], message: str, url: str = "",
                 error_code: str = ""):
        self.status_code = status_code
        self.message = message
        self.url = url
        self.error_code = error_code
        super().__init__(str(self))

    def __str__(self):
        status = f"HTTP {self.status_code}" if self.status_code is not None else "transport error"
        where = f" ({self.url})" if self.url else ""
        return f"{status}: {self.message}{where}"

    @property
    def is_rate_limited(self) -> bool:
        """True for 429 Too Many Requests."""
        return self.status_code == 429

    @property
    def is_not_supported(self) -> bool:
        """True when Okta reports the requested capability as unsupported for the app."""
        return "not supported" in self.message.lower()


class APIResponse:
    """Normalized HTTP response wrapper."""

    def __init__(self, status_code: int, headers: Dict[str, str], body: str, url: str = ""):
        self.status_code = status_code
        self.headers = headers
        self.body = body
        self.url = url
        self._json = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """Parse and cache the response body as JSON."""
        if self._json is None:
            self._json = json.loads(self.body) if self.body else None
        return self._json

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        lower = name.lower()
        for k, v in self.headers.items():
            if k.lower() == lower:
                return v
        return None

    def next_link(self) -> Optional[str]:
        """URL of the next page from the ``Link`` header, or None on the last page."""
        return parse_next_link(self.header("Link"))

    def to_error(self) -> APIError:
        """Build an ``APIError`` from a non-2xx response, using Okta's error body if any."""
        message = self.body.strip()[:200] or "empty response"
        error_code = ""
        try:
            data = self.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            message = data.get("errorSummary") or message
            error_code = data.get("errorCode") or ""
        return APIError(self.status_code, message, url=self.url, error_code=error_code)


class OktaClient:
    """HTTP client for the Okta management API.

    Args:
        base_url:       Org URL (e.g. ``https://example.okta.com``)
        token:          API token or OAuth access token
        auth_scheme:    Authorization scheme, ``SSWS`` for API tokens or ``Bearer``
        tls_no_verify:  Skip TLS certificate verification
        timeout:        Per-request timeout in seconds (None = transport default)
        proxy:          HTTP/HTTPS proxy URL
        ca_bundle:      Path to custom CA certificate bundle file
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        auth_scheme: str = "SSWS",
        tls_no_verify: bool = False,
        timeout: Optional[float] = None,
        proxy: Optional[str] = None,
        ca_bundle: Optional[str] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.auth_scheme = auth_scheme
        self.timeout = timeout

        self.session = requests.Session()
        self.session.headers.update(self._build_headers())
        if ca_bundle:
            self.session.verify = ca_bundle
        elif tls_no_verify:
            self.session.verify = False
        if proxy:
            self.session.proxies.update({"http": proxy, "https": proxy})

    # -- Public API ----------------------------------------------------------

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> APIResponse:
        """Send a GET request.

        ``path`` may be an API path (``/api/v1/apps``) or an absolute URL,
        as handed out by ``Link`` headers.  Transport failures raise
        ``APIError`` with ``status_code=None``; HTTP errors are returned.
        """
        url = path if path.startswith(("http://", "https://")) else f"{self.base_url}{path}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise APIError(None, str(exc) or type(exc).__name__, url=url) from exc
        return APIResponse(resp.status_code, dict(resp.headers), resp.text, url=resp.url)

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET and decode JSON, raising ``APIError`` for anything but a 2xx JSON response."""
        resp = self.get(path, params=params)
        if not resp.ok:
            raise resp.to_error()
        try:
            return resp.json()
        except ValueError as exc:
            raise APIError(None, f"invalid JSON in response: {exc}", url=resp.url) from exc

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    # -- Internals -----------------------------------------------------------

    def _build_headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.token:
            headers["Authorization"] = f"{self.auth_scheme} {self.token}"
        return headers


def parse_next_link(value: Optional[str]) -> Optional[str]:
    """Extract the ``rel="next"`` target from a ``Link`` header value.

    Okta sends ``self`` and ``next`` either comma-joined in one header or as
    repeated headers (which ``requests`` folds into one comma-joined value)::

        <https://x.okta.com/api/v1/apps?limit=200>; rel="self",
        <https://x.okta.com/api/v1/apps?after=0oa9&limit=200>; rel="next"
    """
    if not value:
        return None
    for part in value.split(","):
        segments = [s.strip() for s in part.split(";")]
        if len(segments) < 2:
            continue
        target = segments[0]
        if not (target.startswith("<") and target.endswith(">")):
            continue
        for param in segments[1:]:
            key, _, val = param.partition("=")
            if key.strip().lower() == "rel" and "next" in val.strip('"').split():
                return target[1:-1]
    return None


def redact_auth(headers: Dict[str, str]) -> Dict[str, str]:
    """Return a copy of headers with Authorization values replaced by ``***REDACTED***``.

    Use this whenever headers end up in console output or error messages so
    API tokens never leak into terminal scrollback or CI logs.
    """
    redacted = dict(headers)
    for key in list(redacted.keys()):
        if key.lower() == "authorization":
            redacted[key] = "***REDACTED***"
    return redacted
