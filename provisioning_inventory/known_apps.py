"""Well-known Okta integrations with hard-coded provisioning defaults.

The apps API does not always expose enough detail to tell which lifecycle
operations a catalog integration performs or which attributes it pushes.
For the integrations below the inventory falls back on these defaults:

- ``synthesize_operations``: treat create/update/deactivate as enabled when
  the feature detail cannot be read.
- ``default_attributes``: the attributes the catalog integration pushes out
  of the box, used instead of mapping/schema lookups.

Keys are Okta technical app names (``app.name``), matched case-insensitively.
"""

from typing import Dict, List, Optional, Tuple


class KnownApp:
    """Defaults for one catalog integration."""

    def __init__(self, display_name: str, default_attributes: List[str],
                 synthesize_operations: bool = True):
        self.display_name = display_name
        self.default_attributes = list(default_attributes)
        self.synthesize_operations = synthesize_operations

    @property
    def attribute_source(self) -> str:
        return f"Default schema for {self.display_name}"

    def __repr__(self):
        return f"KnownApp({self.display_name!r})"


_ZOOM = KnownApp("Zoom", ["email", "firstName", "lastName", "type"])
_SLACK = KnownApp("Slack", ["displayName", "email", "firstName", "lastName", "userName"])
_OFFICE365 = KnownApp(
    "Office 365",
    ["displayName", "givenName", "mail", "surname", "usageLocation", "userPrincipalName"],
)
_GOOGLE = KnownApp("Google Workspace", ["familyName", "givenName", "orgUnitPath", "primaryEmail"])
_SALESFORCE = KnownApp(
    "Salesforce",
    ["alias", "email", "firstName", "lastName", "profileId", "userName"],
)
_BOX = KnownApp("Box", ["email", "firstName", "lastName", "login"])

WELL_KNOWN_APPS: Dict[str, KnownApp] = {
    "zoomus": _ZOOM,
    "zoom": _ZOOM,
    "slack": _SLACK,
    "office365": _OFFICE365,
    "google": _GOOGLE,
    "salesforce": _SALESFORCE,
    "boxnet": _BOX,
    "box": _BOX,
}


def lookup(app_name: Optional[str]) -> Optional[KnownApp]:
    """Return the ``KnownApp`` entry for a technical app name, or None."""
    if not app_name:
        return None
    return WELL_KNOWN_APPS.get(app_name.strip().lower())


def default_attributes(app_name: Optional[str]) -> Tuple[List[str], Optional[str]]:
    """Return ``(attributes, source_label)`` for a well-known app, or ``([], None)``."""
    known = lookup(app_name)
    if known is None:
        return [], None
    return list(known.default_attributes), known.attribute_source


def synthesizes_operations(app_name: Optional[str]) -> bool:
    """True if the app is on the allow-list for all-enabled operation fallback."""
    known = lookup(app_name)
    return known is not None and known.synthesize_operations
