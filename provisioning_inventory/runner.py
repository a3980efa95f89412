"""Orchestrates one inventory run.

``run_inventory()`` lists every application, resolves provisioning and
attribute details one app at a time, writes the report file and returns an
exit code (0 = report written, 1 = run aborted).

Failure tiers:
- Listing the applications fails -> the run aborts, no file is written.
- Anything failing while resolving one application -> narrated, that app's
  row falls back to defaults (disabled / empty) and is still emitted.
"""

import os
import time
from typing import Callable, List, Optional

from . import __version__, console
from .config import Settings
from .http_client import APIError, OktaClient, redact_auth
from .lister import list_applications
from .models import Application, ReportRow
from .report import InventoryReport, build_row, print_summary
from .resolvers import (
    DEFAULT_BACKOFF_SECONDS,
    DEFAULT_PACE_SECONDS,
    AttributeResolver,
    ProvisioningResolver,
    RateLimitPolicy,
)


def inventory_application(
    app: Application,
    provisioning: ProvisioningResolver,
    attributes: AttributeResolver,
) -> ReportRow:
    """Resolve one application into a report row.  Never raises."""
    enabled, config = False, None
    try:
        enabled, config = provisioning.resolve(app)
    except Exception as exc:
        console.warn(f"{app.label}: provisioning lookup failed ({type(exc).__name__}: {exc})")
        enabled, config = False, None

    attrs = None
    if enabled:
        try:
            attrs = attributes.resolve(app)
        except Exception as exc:
            console.warn(f"{app.label}: attribute lookup failed ({type(exc).__name__}: {exc})")
            attrs = None

    return build_row(app, enabled, config, attrs)


def build_inventory(
    client: OktaClient,
    policy: RateLimitPolicy,
    active_only: bool = False,
) -> InventoryReport:
    """List applications and resolve each one, in listing order.

    Raises:
        APIError: if the application listing fails.
    """
    apps: List[Application] = list_applications(client)
    if active_only:
        apps = [a for a in apps if a.is_active]
        console.info(f"Reporting {len(apps)} active application(s)")

    provisioning = ProvisioningResolver(client, policy)
    attributes = AttributeResolver(client, policy)
    report = InventoryReport(version=__version__)

    total = len(apps)
    for index, app in enumerate(apps, start=1):
        console.info(f"[{index}/{total}] {app.label or app.name} ({app.id})")
        row = inventory_application(app, provisioning, attributes)
        report.add(row)
        if row.provisioning_enabled:
            console.debug(f"provisioning enabled, {row.field_count} attribute(s)")
    return report


def run_inventory(
    settings: Settings,
    output_dir: str = ".",
    fmt: str = "csv",
    active_only: bool = False,
    tls_no_verify: bool = False,
    timeout: Optional[float] = None,
    proxy: Optional[str] = None,
    ca_bundle: Optional[str] = None,
    pace_seconds: float = DEFAULT_PACE_SECONDS,
    backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Run the full inventory and return an exit code.

    Returns:
        0 if the report was written, 1 if listing applications or writing
        the report failed.

    Args:
        settings:         Resolved domain / token / auth scheme.
        output_dir:       Directory for the timestamped report file.
        fmt:              ``csv`` or ``json``.
        active_only:      Skip applications whose status is not ``ACTIVE``.
        tls_no_verify:    Skip TLS certificate verification.
        timeout:          Per-request timeout in seconds (None = no timeout).
        proxy:            HTTP/HTTPS proxy URL.
        ca_bundle:        Path to a CA bundle file for TLS certificate verification.
        pace_seconds:     Delay before each per-application API call.
        backoff_seconds:  Wait before the single retry after a 429.
        sleep:            Sleep function used for pacing and backoff.
    """
    console.heading(f"provisioning-inventory {__version__}")
    console.info(f"Org: {settings.base_url}  (settings from {settings.source or 'arguments'})")

    policy = RateLimitPolicy(pace_seconds=pace_seconds, backoff_seconds=backoff_seconds, sleep=sleep)

    with OktaClient(
        settings.base_url,
        settings.token,
        auth_scheme=settings.auth_scheme,
        tls_no_verify=tls_no_verify,
        timeout=timeout,
        proxy=proxy,
        ca_bundle=ca_bundle,
    ) as client:
        console.debug(f"request headers: {redact_auth(dict(client.session.headers))}")
        try:
            report = build_inventory(client, policy, active_only=active_only)
        except APIError as exc:
            console.error(f"Could not list applications: {exc}")
            return 1

    path = os.path.join(output_dir, report.filename(fmt))
    try:
        os.makedirs(output_dir, exist_ok=True)
        report.write(path, fmt)
    except OSError as exc:
        console.error(f"Could not write report {path}: {exc}")
        return 1

    print_summary(report, path)
    return 0
