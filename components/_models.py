"""
Typed configuration for the storage account and its child services.

Every struct fills its defaults at construction time, so the planner never
has to guess whether an optional field was given. ``from_dict`` builds a
struct from the plain dicts that ``pulumi.Config.get_object`` returns; keys
use snake_case, matching the dataclass fields.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PlanningError(ValueError):
    """Base class for configuration the planner refuses to plan."""


class InvalidNameLengthError(PlanningError):
    """Raised by the fail-fast policy when the derived name is out of bounds."""


class MissingRequiredFieldError(PlanningError):
    """Raised when a required configuration field is absent or empty."""

    def __init__(self, field_path: str):
        super().__init__(f"Missing required field: {field_path}")
        self.field_path = field_path


class PublicAccess(str, Enum):
    NONE = "None"
    BLOB = "Blob"
    CONTAINER = "Container"


class LockLevel(str, Enum):
    CAN_NOT_DELETE = "CanNotDelete"
    READ_ONLY = "ReadOnly"


class PrivateEndpointService(str, Enum):
    BLOB = "blob"
    FILE = "file"
    QUEUE = "queue"
    TABLE = "table"
    WEB = "web"
    DFS = "dfs"


class InvalidNamePolicy(str, Enum):
    """What to do when the derived storage account name is invalid."""

    SKIP = "skip"
    FAIL = "fail"


# Log Analytics workspace diagnostics go to when none is configured.
DEFAULT_FALLBACK_WORKSPACE_ID: str = (
    "/subscriptions/00000000-0000-0000-0000-000000000000/resourceGroups/rg-monitoring"
    "/providers/Microsoft.OperationalInsights/workspaces/law-storage-diagnostics"
)
DEFAULT_LOCK_NOTES: str = "Prevents accidental deletion of the storage account."


def parse_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in ("1", "true", "yes")


def _require(data: dict[str, Any], key: str, path: str) -> Any:
    value = data.get(key)
    if value is None or value == "":
        raise MissingRequiredFieldError(f"{path}.{key}")
    return value


@dataclass(frozen=True)
class RetentionPolicy:
    enabled: bool = False
    days: int = 7

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "RetentionPolicy":
        data = data or {}
        return cls(
            enabled=parse_bool(data.get("enabled", False)),
            days=int(data.get("days", 7)),
        )


@dataclass(frozen=True)
class BlobContainerConfig:
    """
    One blob container.

    Attributes:
        name: Container name.
        public_access: Anonymous access level; defaults to no public access.
        metadata: Container metadata; defaults to an empty mapping.
    """

    name: str
    public_access: PublicAccess = PublicAccess.NONE
    metadata: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        # frozen: coerce through object.__setattr__
        object.__setattr__(
            self, "public_access", PublicAccess(self.public_access or PublicAccess.NONE)
        )
        object.__setattr__(self, "metadata", dict(self.metadata or {}))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BlobContainerConfig":
        return cls(
            name=_require(data, "name", "blob.containers[]"),
            public_access=data.get("public_access") or PublicAccess.NONE,
            metadata=data.get("metadata") or {},
        )


@dataclass(frozen=True)
class BlobServiceConfig:
    """
    Blob service properties and containers.

    The service is only deployed when a retention policy is enabled or at
    least one container is declared.
    """

    containers: list[BlobContainerConfig] = field(default_factory=list)
    delete_retention_policy: RetentionPolicy = field(default_factory=RetentionPolicy)
    container_delete_retention_policy: RetentionPolicy = field(
        default_factory=RetentionPolicy
    )
    is_versioning_enabled: bool = False
    change_feed_enabled: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BlobServiceConfig":
        return cls(
            containers=[
                BlobContainerConfig.from_dict(c) for c in data.get("containers") or []
            ],
            delete_retention_policy=RetentionPolicy.from_dict(
                data.get("delete_retention_policy")
            ),
            container_delete_retention_policy=RetentionPolicy.from_dict(
                data.get("container_delete_retention_policy")
            ),
            is_versioning_enabled=parse_bool(
                data.get("is_versioning_enabled", False)
            ),
            change_feed_enabled=parse_bool(data.get("change_feed_enabled", False)),
        )


@dataclass(frozen=True)
class QueueConfig:
    name: str
    metadata: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "metadata", dict(self.metadata or {}))


@dataclass(frozen=True)
class QueueServiceConfig:
    queues: list[QueueConfig] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QueueServiceConfig":
        return cls(
            queues=[
                QueueConfig(
                    name=_require(q, "name", "queue.queues[]"),
                    metadata=q.get("metadata") or {},
                )
                for q in data.get("queues") or []
            ]
        )


@dataclass(frozen=True)
class TableConfig:
    name: str


@dataclass(frozen=True)
class TableServiceConfig:
    tables: list[TableConfig] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TableServiceConfig":
        return cls(
            tables=[
                TableConfig(name=_require(t, "name", "table.tables[]"))
                for t in data.get("tables") or []
            ]
        )


@dataclass(frozen=True)
class DiagnosticsConfig:
    """
    Diagnostic settings sent to a Log Analytics workspace.

    An empty ``workspace_id`` means "use the fallback workspace" supplied to
    the planner through PlanSettings.
    """

    enabled: bool = True
    workspace_id: str = ""
    name: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DiagnosticsConfig":
        return cls(
            enabled=parse_bool(data.get("enabled", True)),
            workspace_id=data.get("workspace_id") or "",
            name=data.get("name"),
        )


@dataclass(frozen=True)
class LockConfig:
    enabled: bool = True
    level: LockLevel = LockLevel.CAN_NOT_DELETE
    notes: str = DEFAULT_LOCK_NOTES

    def __post_init__(self):
        object.__setattr__(self, "level", LockLevel(self.level))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LockConfig":
        return cls(
            enabled=parse_bool(data.get("enabled", True)),
            level=data.get("level") or LockLevel.CAN_NOT_DELETE,
            notes=data.get("notes") or DEFAULT_LOCK_NOTES,
        )


@dataclass(frozen=True)
class RoleAssignmentConfig:
    """
    Role granted to a principal on the storage account.

    Attributes:
        principal_id: Object id of the user, group or service principal.
        role_definition_id_or_name: Built-in role name (e.g. "Storage Blob
            Data Reader"), role definition GUID, or full role definition id.
        principal_type: ARM principal type; defaults to "ServicePrincipal".
        description: Free-form description stored on the assignment.
    """

    principal_id: str
    role_definition_id_or_name: str
    principal_type: str = "ServicePrincipal"
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RoleAssignmentConfig":
        return cls(
            principal_id=_require(data, "principal_id", "role_assignments[]"),
            role_definition_id_or_name=_require(
                data, "role_definition_id_or_name", "role_assignments[]"
            ),
            principal_type=data.get("principal_type") or "ServicePrincipal",
            description=data.get("description") or "",
        )


@dataclass(frozen=True)
class PrivateEndpointConfig:
    """
    Private endpoint into one storage sub-resource.

    A private DNS zone group is linked only when ``private_dns_zone_id`` is
    given.
    """

    subnet_id: str
    service: PrivateEndpointService = PrivateEndpointService.BLOB
    private_dns_zone_id: str | None = None
    name: str | None = None

    def __post_init__(self):
        object.__setattr__(
            self, "service", PrivateEndpointService(self.service or "blob")
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PrivateEndpointConfig":
        return cls(
            subnet_id=_require(data, "subnet_id", "private_endpoint"),
            service=data.get("service") or PrivateEndpointService.BLOB,
            private_dns_zone_id=data.get("private_dns_zone_id") or None,
            name=data.get("name"),
        )


@dataclass(frozen=True)
class StorageConfig:
    """
    Everything the planner needs besides the derived name.

    ``blob``, ``queue``, ``table`` and ``private_endpoint`` are optional:
    None means "do not deploy". ``tags`` is required; a None value is
    rejected when planning.
    """

    location: str
    tags: dict[str, str] | None
    sku_name: str = "Standard_LRS"
    kind: str = "StorageV2"
    account_overrides: dict[str, Any] = field(default_factory=dict)
    blob: BlobServiceConfig | None = None
    queue: QueueServiceConfig | None = None
    table: TableServiceConfig | None = None
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    lock: LockConfig = field(default_factory=LockConfig)
    role_assignments: list[RoleAssignmentConfig] = field(default_factory=list)
    private_endpoint: PrivateEndpointConfig | None = None


@dataclass(frozen=True)
class PlanSettings:
    """
    Values injected into the planner at call time.

    Attributes:
        fallback_workspace_id: Log Analytics workspace used when diagnostics
            are enabled without an explicit workspace id. Override per stack;
            an empty value falls back to DEFAULT_FALLBACK_WORKSPACE_ID.
        invalid_name_policy: SKIP returns an empty plan for an invalid name;
            FAIL raises InvalidNameLengthError.
        subscription_id: Scopes resolved role definition ids; left
            provider-scoped when empty.
    """

    fallback_workspace_id: str = DEFAULT_FALLBACK_WORKSPACE_ID
    invalid_name_policy: InvalidNamePolicy = InvalidNamePolicy.SKIP
    subscription_id: str = ""
