"""
Stack configuration loaded from pulumi.Config().

Provides a typed, immutable view of stack settings. All settings are read from
Pulumi config (e.g. Pulumi.<stack>.yaml or pulumi config set). Identity keys
and tags are required; service blocks are optional objects and are turned
into the typed structs in components._models. Used by __main__.main() to
derive the storage account name, plan the resources, and pick the
invalid-name policy.
"""

from dataclasses import dataclass, field
from typing import Any, Callable

import pulumi

from components._models import (
    DEFAULT_FALLBACK_WORKSPACE_ID,
    BlobServiceConfig,
    DiagnosticsConfig,
    InvalidNamePolicy,
    LockConfig,
    PlanSettings,
    PrivateEndpointConfig,
    QueueServiceConfig,
    RoleAssignmentConfig,
    StorageConfig,
    TableServiceConfig,
)


def _require_str(config: pulumi.Config, key: str) -> str:
    return config.require(key)


def _require_object(config: pulumi.Config, key: str) -> Any:
    return config.require_object(key)


def _optional_str(default: str) -> Callable[[pulumi.Config, str], str]:
    def parse(config: pulumi.Config, key: str) -> str:
        value = config.get(key)
        return default if value is None else value

    return parse


def _optional_object(
    build: Callable[[Any], Any],
    default: Callable[[], Any] = lambda: None,
) -> Callable[[pulumi.Config, str], Any]:
    # default is a factory, called once per load
    def parse(config: pulumi.Config, key: str) -> Any:
        value = config.get_object(key)
        return default() if value is None else build(value)

    return parse


def _parse_policy(config: pulumi.Config, key: str) -> InvalidNamePolicy:
    raw = config.get(key) or InvalidNamePolicy.FAIL.value
    try:
        return InvalidNamePolicy(str(raw).strip().lower())
    except ValueError:
        choices = ", ".join(p.value for p in InvalidNamePolicy)
        raise ValueError(f"{key} must be one of: {choices} (got {raw!r})") from None


# (key, parser); parser receives (config, key) and returns value.
_CONFIG_SPEC: list[tuple[str, Callable[[pulumi.Config, str], Any]]] = [
    ("workload_name", _require_str),
    ("resource_group_name", _require_str),
    ("subscription_id", _require_str),
    ("location", _require_str),
    ("tags", _require_object),
    ("environment", _optional_str("dev")),
    ("sku_name", _optional_str("Standard_LRS")),
    ("kind", _optional_str("StorageV2")),
    ("account_overrides", _optional_object(dict, dict)),
    ("blob", _optional_object(BlobServiceConfig.from_dict)),
    ("queue", _optional_object(QueueServiceConfig.from_dict)),
    ("table", _optional_object(TableServiceConfig.from_dict)),
    ("diagnostics", _optional_object(DiagnosticsConfig.from_dict, DiagnosticsConfig)),
    ("lock", _optional_object(LockConfig.from_dict, LockConfig)),
    (
        "role_assignments",
        _optional_object(
            lambda items: [RoleAssignmentConfig.from_dict(i) for i in items], list
        ),
    ),
    ("private_endpoint", _optional_object(PrivateEndpointConfig.from_dict)),
    ("fallback_workspace_id", _optional_str(DEFAULT_FALLBACK_WORKSPACE_ID)),
    ("invalid_name_policy", _parse_policy),
]


@dataclass(frozen=True)
class StackConfig:
    """
    Stack configuration from Pulumi config.

    Attributes:
        workload_name: Workload token the storage account name derives from (required).
        resource_group_name: Resource group to deploy into; also the naming scope (required).
        subscription_id: Azure subscription id; part of the naming fingerprint (required).
        location: Azure region (required).
        tags: Tags applied to the account and private endpoint (required).
        environment: Environment label used in component naming.
        sku_name: Storage account SKU.
        kind: Storage account kind.
        account_overrides: Storage account arguments overriding the secure defaults.
        blob: Blob service block; omitted means no blob service.
        queue: Queue service block; omitted means no queue service.
        table: Table service block; omitted means no table service.
        diagnostics: Diagnostic settings; enabled by default.
        lock: Management lock; enabled (CanNotDelete) by default.
        role_assignments: Roles granted on the account.
        private_endpoint: Private endpoint block; omitted means none.
        fallback_workspace_id: Workspace used when diagnostics has no workspace_id.
        invalid_name_policy: "fail" (default) rejects an invalid name before
            deploying; "skip" deploys nothing.
    """

    workload_name: str
    resource_group_name: str
    subscription_id: str
    location: str
    tags: dict[str, str]
    environment: str = "dev"
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
    fallback_workspace_id: str = DEFAULT_FALLBACK_WORKSPACE_ID
    invalid_name_policy: InvalidNamePolicy = InvalidNamePolicy.FAIL

    @classmethod
    def from_pulumi_config(cls, config: pulumi.Config) -> "StackConfig":
        """
        Build StackConfig from pulumi.Config(). Keys parsed by _require_* are required.
        """
        kwargs = {key: parser(config, key) for key, parser in _CONFIG_SPEC}
        return cls(**kwargs)

    @property
    def storage(self) -> StorageConfig:
        return StorageConfig(
            location=self.location,
            tags=self.tags,
            sku_name=self.sku_name,
            kind=self.kind,
            account_overrides=self.account_overrides,
            blob=self.blob,
            queue=self.queue,
            table=self.table,
            diagnostics=self.diagnostics,
            lock=self.lock,
            role_assignments=self.role_assignments,
            private_endpoint=self.private_endpoint,
        )

    @property
    def plan_settings(self) -> PlanSettings:
        return PlanSettings(
            fallback_workspace_id=self.fallback_workspace_id,
            invalid_name_policy=self.invalid_name_policy,
            subscription_id=self.subscription_id,
        )
