"""Records passed between the lister, resolvers and reporter.

All of them live only for the duration of one run.
"""

from typing import Any, Dict, Iterable, List, Optional

LIST_SEPARATOR = "; "

# Report columns, in output order
COLUMNS = [
    "AppId",
    "AppName",
    "AppLabel",
    "Status",
    "IsActive",
    "ProvisioningEnabled",
    "CreateOperation",
    "UpdateOperation",
    "DeactivateOperation",
    "SyncFields",
    "FieldCount",
    "AttributeSources",
]

PROVISIONING_FEATURES = ("USER_PROVISIONING", "USER_MANAGEMENT")


class Application:
    """One application from ``GET /api/v1/apps``.

    Attributes:
        id:        Okta app id (``0oa...``).
        name:      Technical name of the integration (``slack``, ``office365``, ...).
        label:     Display label set by the admin.
        status:    ``ACTIVE`` / ``INACTIVE``.
    """

    def __init__(self, id: str, name: str = "", label: str = "", status: str = ""):
        self.id = id
        self.name = name
        self.label = label
        self.status = status

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Application":
        return cls(
            id=data.get("id") or "",
            name=data.get("name") or "",
            label=data.get("label") or "",
            status=data.get("status") or "",
        )

    @property
    def is_active(self) -> bool:
        return self.status == "ACTIVE"

    def __repr__(self):
        return f"Application({self.id!r}, name={self.name!r}, status={self.status!r})"


class ProvisioningConfig:
    """Lifecycle operations enabled for an app's provisioning feature.

    ``source`` records how the flags were obtained, e.g.
    ``feature:USER_PROVISIONING`` for a detail read, ``feature status`` or
    ``well-known app`` for synthesized all-enabled configs.
    """

    def __init__(self, create: bool = False, update: bool = False, deactivate: bool = False,
                 source: str = ""):
        self.create = create
        self.update = update
        self.deactivate = deactivate
        self.source = source

    @classmethod
    def all_enabled(cls, source: str) -> "ProvisioningConfig":
        return cls(True, True, True, source=source)

    def __eq__(self, other):
        if not isinstance(other, ProvisioningConfig):
            return NotImplemented
        return (self.create, self.update, self.deactivate) == (other.create, other.update, other.deactivate)

    def __repr__(self):
        return (f"ProvisioningConfig(create={self.create}, update={self.update}, "
                f"deactivate={self.deactivate}, source={self.source!r})")


class AttributeSet:
    """Synchronized attribute names plus the lookups that produced them.

    Names are deduplicated and sorted by ordinal comparison on construction.
    """

    def __init__(self, names: Iterable[str] = (), sources: Iterable[str] = ()):
        self.names = sorted({n for n in names if n})
        self.sources = list(sources)

    def __len__(self):
        return len(self.names)

    def __bool__(self):
        return bool(self.names)

    def __repr__(self):
        return f"AttributeSet({self.names!r}, sources={self.sources!r})"


class ReportRow:
    """One output line: an application and its resolved provisioning details."""

    def __init__(
        self,
        app_id: str,
        app_name: str,
        app_label: str,
        status: str,
        provisioning_enabled: bool = False,
        create: bool = False,
        update: bool = False,
        deactivate: bool = False,
        sync_fields: Optional[List[str]] = None,
        attribute_sources: Optional[List[str]] = None,
    ):
        self.app_id = app_id
        self.app_name = app_name
        self.app_label = app_label
        self.status = status
        self.provisioning_enabled = provisioning_enabled
        self.create = create
        self.update = update
        self.deactivate = deactivate
        self.sync_fields = list(sync_fields or [])
        self.attribute_sources = list(attribute_sources or [])

    @property
    def is_active(self) -> bool:
        return self.status == "ACTIVE"

    @property
    def field_count(self) -> int:
        return len(self.sync_fields)

    def to_dict(self) -> Dict[str, Any]:
        """Column name -> value, with native booleans/ints and lists joined by ``"; "``."""
        return {
            "AppId": self.app_id,
            "AppName": self.app_name,
            "AppLabel": self.app_label,
            "Status": self.status,
            "IsActive": self.is_active,
            "ProvisioningEnabled": self.provisioning_enabled,
            "CreateOperation": self.create,
            "UpdateOperation": self.update,
            "DeactivateOperation": self.deactivate,
            "SyncFields": LIST_SEPARATOR.join(self.sync_fields),
            "FieldCount": self.field_count,
            "AttributeSources": LIST_SEPARATOR.join(self.attribute_sources),
        }

    def __repr__(self):
        return f"ReportRow({self.app_id!r}, provisioning={self.provisioning_enabled})"
