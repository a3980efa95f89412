"""Per-application lookups: provisioning feature and synchronized attributes.

Both resolvers walk an ordered fallback chain and stop at the first step
that yields a result:

Provisioning
  1. ``GET /apps/{id}/features`` -> is USER_PROVISIONING / USER_MANAGEMENT present?
  2. ``GET /apps/{id}/features/{name}`` -> read create/update/deactivate flags
     (preferred feature name first, then the other one)
  3. feature ``status == ENABLED`` -> all operations enabled
  4. well-known integration -> all operations enabled

Attributes
  1. well-known integration -> hard-coded default attribute list
  2. ``GET /mappings?targetId={id}`` + ``GET /mappings/{mappingId}`` -> property names
  3. ``GET /meta/schemas/apps/{id}/default`` -> ``user`` property names

Only the feature detail, mapping list and schema calls get the single
wait-and-retry on 429.  Every other failure ends just that step.
"""

import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from . import console, known_apps
from .http_client import APIError, OktaClient
from .models import PROVISIONING_FEATURES, Application, AttributeSet, ProvisioningConfig

# Fixed waits.  Not adaptive: a blanket throttle plus one fallback wait on 429.
DEFAULT_PACE_SECONDS = 1.0
DEFAULT_BACKOFF_SECONDS = 30.0

MAPPING_SOURCE = "Mapping details"
SCHEMA_SOURCE = "Schema"
RETRY_SUFFIX = " (retry)"


class RateLimitPolicy:
    """Fixed pacing between calls and a single fixed wait-and-retry on 429.

    Args:
        pace_seconds:     Delay inserted before each per-application API call.
        backoff_seconds:  Wait after a 429 before the one retry.
        sleep:            Sleep function, replaceable in tests.
    """

    def __init__(self, pace_seconds: float = DEFAULT_PACE_SECONDS,
                 backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
                 sleep: Callable[[float], None] = time.sleep):
        self.pace_seconds = pace_seconds
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    def pace(self):
        if self.pace_seconds > 0:
            self._sleep(self.pace_seconds)

    def call_with_retry(self, fn: Callable[[], Any], description: str) -> Tuple[Any, bool]:
        """Call ``fn``; on a 429 wait ``backoff_seconds`` and call it exactly once more.

        Returns ``(result, retried)``.  A second failure of any kind, or a
        first failure that is not a 429, propagates as ``APIError``.
        """
        try:
            return fn(), False
        except APIError as exc:
            if not exc.is_rate_limited:
                raise
        console.warn(f"Rate limited on {description}; waiting {self.backoff_seconds:g}s before retrying once")
        if self.backoff_seconds > 0:
            self._sleep(self.backoff_seconds)
        return fn(), True


def _status_enabled(node: Any) -> bool:
    return isinstance(node, dict) and node.get("status") == "ENABLED"


def parse_capabilities(feature: Dict[str, Any], source: str) -> Optional[ProvisioningConfig]:
    """Read operation flags from a feature detail document.

    Okta shape::

        {"name": "USER_PROVISIONING", "status": "ENABLED",
         "capabilities": {
             "create": {"lifecycleCreate": {"status": "ENABLED"}},
             "update": {"profile": {"status": "ENABLED"},
                        "lifecycleDeactivate": {"status": "ENABLED"}}}}

    Returns None when the document carries no ``capabilities`` object, or
    when ``create`` / ``update`` are present but not objects.
    """
    caps = feature.get("capabilities") if isinstance(feature, dict) else None
    if not isinstance(caps, dict):
        return None
    create = caps.get("create") or {}
    update = caps.get("update") or {}
    if not isinstance(create, dict) or not isinstance(update, dict):
        return None
    return ProvisioningConfig(
        create=_status_enabled(create.get("lifecycleCreate")),
        update=_status_enabled(update.get("profile")),
        deactivate=_status_enabled(update.get("lifecycleDeactivate")),
        source=source,
    )


def find_provisioning_feature(features: Any) -> Optional[Dict[str, Any]]:
    """Pick the provisioning feature from a features listing, USER_PROVISIONING first."""
    if not isinstance(features, list):
        return None
    by_name = {f.get("name"): f for f in features if isinstance(f, dict)}
    for name in PROVISIONING_FEATURES:
        if name in by_name:
            return by_name[name]
    return None


class ProvisioningResolver:
    """Decides whether an app provisions users and which operations it performs."""

    def __init__(self, client: OktaClient, policy: RateLimitPolicy):
        self.client = client
        self.policy = policy

    def resolve(self, app: Application) -> Tuple[bool, Optional[ProvisioningConfig]]:
        """Return ``(provisioning_enabled, config)``.

        ``config`` is None when provisioning is disabled or no fallback
        step could determine the operations.
        """
        self.policy.pace()
        try:
            features = self.client.get_json(f"/api/v1/apps/{app.id}/features")
        except APIError as exc:
            if exc.is_not_supported:
                console.debug(f"{app.label}: provisioning not supported")
            else:
                console.warn(f"{app.label}: could not list features ({exc})")
            return False, None

        feature = find_provisioning_feature(features)
        if feature is None:
            console.debug(f"{app.label}: no provisioning feature")
            return False, None

        matched = feature.get("name")
        names = [matched] + [n for n in PROVISIONING_FEATURES if n != matched]

        config = None
        for name in names:
            config = self._fetch_detail(app, name)
            if config is not None:
                break

        if config is None and feature.get("status") == "ENABLED":
            console.debug(f"{app.label}: feature detail unavailable, {matched} is ENABLED")
            config = ProvisioningConfig.all_enabled("feature status")

        if config is None and known_apps.synthesizes_operations(app.name):
            console.debug(f"{app.label}: using well-known defaults for {app.name}")
            config = ProvisioningConfig.all_enabled("well-known app")

        return True, config

    def _fetch_detail(self, app: Application, name: str) -> Optional[ProvisioningConfig]:
        path = f"/api/v1/apps/{app.id}/features/{name}"
        self.policy.pace()
        try:
            detail, _ = self.policy.call_with_retry(
                lambda: self.client.get_json(path), f"{app.label} {name}",
            )
        except APIError as exc:
            console.warn(f"{app.label}: could not read {name} ({exc})")
            return None
        return parse_capabilities(detail, f"feature:{name}")


class AttributeResolver:
    """Collects the user attribute names an app synchronizes."""

    def __init__(self, client: OktaClient, policy: RateLimitPolicy):
        self.client = client
        self.policy = policy

    def resolve(self, app: Application) -> AttributeSet:
        names, source = known_apps.default_attributes(app.name)
        sources = [source] if names else []

        if not names:
            names, source = self._from_mappings(app)
            sources = [source] if names else []

        if not names:
            names, source = self._from_schema(app)
            sources = [source] if names else []

        return AttributeSet(names, sources)

    def _from_mappings(self, app: Application) -> Tuple[List[str], str]:
        self.policy.pace()
        try:
            mappings, retried = self.policy.call_with_retry(
                lambda: self.client.get_json("/api/v1/mappings", params={"targetId": app.id}),
                f"{app.label} mappings",
            )
        except APIError as exc:
            console.warn(f"{app.label}: could not list profile mappings ({exc})")
            return [], MAPPING_SOURCE

        names: List[str] = []
        for mapping in mappings if isinstance(mappings, list) else []:
            if not _is_user_push_mapping(mapping):
                continue
            mapping_id = mapping.get("id")
            if not mapping_id:
                console.debug(f"{app.label}: skipping mapping without an id")
                continue
            self.policy.pace()
            try:
                detail = self.client.get_json(f"/api/v1/mappings/{mapping_id}")
            except APIError as exc:
                console.warn(f"{app.label}: could not read mapping {mapping_id} ({exc})")
                continue
            properties = detail.get("properties") if isinstance(detail, dict) else None
            if isinstance(properties, dict):
                names.extend(properties.keys())

        return names, MAPPING_SOURCE + (RETRY_SUFFIX if retried else "")

    def _from_schema(self, app: Application) -> Tuple[List[str], str]:
        self.policy.pace()
        try:
            schema, retried = self.policy.call_with_retry(
                lambda: self.client.get_json(f"/api/v1/meta/schemas/apps/{app.id}/default"),
                f"{app.label} schema",
            )
        except APIError as exc:
            console.warn(f"{app.label}: could not read app user schema ({exc})")
            return [], SCHEMA_SOURCE

        return schema_user_properties(schema), SCHEMA_SOURCE + (RETRY_SUFFIX if retried else "")


def _is_user_push_mapping(mapping: Any) -> bool:
    """Okta user -> app user mappings: source type ``user``, target type containing ``USER``."""
    if not isinstance(mapping, dict):
        return False
    source_type = str((mapping.get("source") or {}).get("type") or "")
    target_type = str((mapping.get("target") or {}).get("type") or "")
    return source_type.lower() == "user" and "USER" in target_type.upper()


def schema_user_properties(schema: Any) -> List[str]:
    """Property names of the ``user`` object, at the top level or under ``definitions``."""
    if not isinstance(schema, dict):
        return []
    for container in (schema, schema.get("definitions")):
        if not isinstance(container, dict):
            continue
        user = container.get("user")
        if isinstance(user, dict) and isinstance(user.get("properties"), dict):
            return list(user["properties"].keys())
    return []
