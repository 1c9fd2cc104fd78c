"""
Resource planning: which resources a storage stack deploys, and with what.

``plan`` turns a derived storage account name and a StorageConfig into an
ordered list of ResourceIntent records. It is pure: no Pulumi import, no
I/O, nothing kept between calls. StorageInfra (components.azure) realizes
the intents; ``params`` keys are the pulumi_azure_native keyword arguments
of the resource each intent becomes.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from components._helpers import private_dns_zone_name, role_assignment_name
from components._models import (
    DEFAULT_FALLBACK_WORKSPACE_ID,
    InvalidNameLengthError,
    InvalidNamePolicy,
    MissingRequiredFieldError,
    PlanSettings,
    RetentionPolicy,
    StorageConfig,
)


class ResourceKind(str, Enum):
    STORAGE_ACCOUNT = "StorageAccount"
    BLOB_SERVICE = "BlobService"
    QUEUE_SERVICE = "QueueService"
    TABLE_SERVICE = "TableService"
    DIAGNOSTICS = "Diagnostics"
    LOCK = "Lock"
    ROLE_ASSIGNMENT = "RoleAssignment"
    PRIVATE_ENDPOINT = "PrivateEndpoint"


@dataclass(frozen=True)
class ResourceIntent:
    """
    A planned, not-yet-created resource.

    Attributes:
        kind: Which resource this is.
        params: Constructor arguments, with every default filled in.
        depends_on: Kinds that must exist before this resource is created.
    """

    kind: ResourceKind
    params: dict[str, Any] = field(default_factory=dict)
    depends_on: list[ResourceKind] = field(default_factory=list)


# Applied to every storage account unless overridden through
# StorageConfig.account_overrides. Used by tests and callers to assert on
# secure defaults.
STORAGE_ACCOUNT_DEFAULTS: dict[str, Any] = {
    "allow_shared_key_access": False,
    "allow_blob_public_access": False,
    "default_to_o_auth_authentication": True,
    "minimum_tls_version": "TLS1_2",
    "enable_https_traffic_only": True,
    "network_rule_set": {
        "default_action": "Deny",
        "bypass": "AzureServices",
    },
}

# Built-in roles commonly granted on a storage account, by display name.
BUILT_IN_ROLES: dict[str, str] = {
    "Owner": "8e3af657-a8ff-443c-a75c-2fe8c4bcb635",
    "Contributor": "b24988ac-6180-42a0-ab88-20f7382dd24c",
    "Reader": "acdd72a7-3385-48ef-bd42-f606fba81ae7",
    "Storage Account Contributor": "17d1049b-9a84-46fb-8f53-869881c3d3ab",
    "Storage Blob Data Owner": "b7e6dc6d-f1e8-4753-8033-0f276bb0955b",
    "Storage Blob Data Contributor": "ba92f5b4-2d11-453d-a403-e96b0029c9fe",
    "Storage Blob Data Reader": "2a2b9908-6ea1-4ae2-8e65-a410df84e7d1",
    "Storage Queue Data Contributor": "974c5e8b-45b9-4653-ba55-5f855dd0fb88",
    "Storage Queue Data Reader": "19e7f393-937e-4f77-808e-94535e297925",
    "Storage Table Data Contributor": "0a9a7e1f-b9d0-4cc4-a60d-0319b160aaa3",
    "Storage Table Data Reader": "76199698-9eea-4c19-bc75-cec21354c6b6",
}

# Service-level log categories; the account itself only emits metrics.
STORAGE_LOG_CATEGORIES: list[str] = ["StorageRead", "StorageWrite", "StorageDelete"]
STORAGE_METRIC_CATEGORIES: list[str] = ["Transaction"]

_GUID = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


def resolve_role_definition_id(
    role_definition_id_or_name: str,
    subscription_id: str = "",
) -> str:
    """
    Resolve a role name, GUID or resource id to a role definition id.

    Full ids (starting with "/") pass through; built-in names and bare GUIDs
    become ".../providers/Microsoft.Authorization/roleDefinitions/<guid>",
    subscription-scoped when ``subscription_id`` is known. Unknown names
    raise MissingRequiredFieldError.
    """
    if role_definition_id_or_name.startswith("/"):
        return role_definition_id_or_name
    guid = BUILT_IN_ROLES.get(role_definition_id_or_name)
    if guid is None:
        if not _GUID.match(role_definition_id_or_name):
            raise MissingRequiredFieldError(
                f"role_assignments[].role_definition_id_or_name "
                f"(unknown role {role_definition_id_or_name!r})"
            )
        guid = role_definition_id_or_name
    scope = f"/subscriptions/{subscription_id}" if subscription_id else ""
    return f"{scope}/providers/Microsoft.Authorization/roleDefinitions/{guid}"


def merge_account_overrides(overrides: dict[str, Any]) -> dict[str, Any]:
    """
    Overlay ``overrides`` on STORAGE_ACCOUNT_DEFAULTS.

    Dict-valued defaults (network_rule_set) merge one level deep, so
    overriding ip_rules keeps default_action and bypass.
    """
    merged = dict(STORAGE_ACCOUNT_DEFAULTS)
    for key, value in overrides.items():
        default = STORAGE_ACCOUNT_DEFAULTS.get(key)
        if isinstance(default, dict) and isinstance(value, dict):
            merged[key] = {**default, **value}
        else:
            merged[key] = value
    return merged


def _retention_args(policy: RetentionPolicy) -> dict[str, Any]:
    # ARM rejects a retention period on a disabled policy.
    if not policy.enabled:
        return {"enabled": False}
    return {"enabled": True, "days": policy.days}


def _storage_account_intent(name: str, config: StorageConfig) -> ResourceIntent:
    params = {
        **merge_account_overrides(config.account_overrides),
        "account_name": name,
        "location": config.location,
        "kind": config.kind,
        "sku": {"name": config.sku_name},
        "tags": dict(config.tags or {}),
    }
    return ResourceIntent(kind=ResourceKind.STORAGE_ACCOUNT, params=params)


def _child(kind: ResourceKind, params: dict[str, Any]) -> ResourceIntent:
    # Every child references the account, so it must be created first.
    return ResourceIntent(
        kind=kind, params=params, depends_on=[ResourceKind.STORAGE_ACCOUNT]
    )


def _blob_service_intent(config: StorageConfig) -> ResourceIntent | None:
    blob = config.blob
    if blob is None:
        return None
    if not (
        blob.delete_retention_policy.enabled
        or blob.container_delete_retention_policy.enabled
        or blob.containers
    ):
        return None
    return _child(
        ResourceKind.BLOB_SERVICE,
        {
            "blob_services_name": "default",
            "delete_retention_policy": _retention_args(blob.delete_retention_policy),
            "container_delete_retention_policy": _retention_args(
                blob.container_delete_retention_policy
            ),
            "is_versioning_enabled": blob.is_versioning_enabled,
            "change_feed": {"enabled": blob.change_feed_enabled},
            "containers": [
                {
                    "container_name": c.name,
                    "public_access": c.public_access.value,
                    "metadata": dict(c.metadata),
                }
                for c in blob.containers
            ],
        },
    )


def _queue_service_intent(config: StorageConfig) -> ResourceIntent | None:
    if config.queue is None or not config.queue.queues:
        return None
    return _child(
        ResourceKind.QUEUE_SERVICE,
        {
            "queue_service_name": "default",
            "queues": [
                {"queue_name": q.name, "metadata": dict(q.metadata)}
                for q in config.queue.queues
            ],
        },
    )


def _table_service_intent(config: StorageConfig) -> ResourceIntent | None:
    if config.table is None or not config.table.tables:
        return None
    return _child(
        ResourceKind.TABLE_SERVICE,
        {
            "table_service_name": "default",
            "tables": [{"table_name": t.name} for t in config.table.tables],
        },
    )


def _diagnostics_intent(
    name: str,
    config: StorageConfig,
    settings: PlanSettings,
    services: list[str],
) -> ResourceIntent | None:
    diagnostics = config.diagnostics
    if not diagnostics.enabled:
        return None
    workspace_id = (
        diagnostics.workspace_id
        or settings.fallback_workspace_id
        or DEFAULT_FALLBACK_WORKSPACE_ID
    )
    metrics = [{"category": c, "enabled": True} for c in STORAGE_METRIC_CATEGORIES]
    return _child(
        ResourceKind.DIAGNOSTICS,
        {
            "name": diagnostics.name or f"{name}-diagnostics",
            "workspace_id": workspace_id,
            "metrics": metrics,
            "services": [
                {
                    "service": service,
                    "logs": [
                        {"category": c, "enabled": True}
                        for c in STORAGE_LOG_CATEGORIES
                    ],
                    "metrics": metrics,
                }
                for service in services
            ],
        },
    )


def _lock_intent(name: str, config: StorageConfig) -> ResourceIntent | None:
    if not config.lock.enabled:
        return None
    return _child(
        ResourceKind.LOCK,
        {
            "lock_name": f"{name}-lock",
            "level": config.lock.level.value,
            "notes": config.lock.notes,
        },
    )


def _role_assignment_intents(
    name: str,
    config: StorageConfig,
    settings: PlanSettings,
) -> list[ResourceIntent]:
    intents = []
    for index, assignment in enumerate(config.role_assignments):
        if not assignment.principal_id:
            raise MissingRequiredFieldError(f"role_assignments[{index}].principal_id")
        if not assignment.role_definition_id_or_name:
            raise MissingRequiredFieldError(
                f"role_assignments[{index}].role_definition_id_or_name"
            )
        intents.append(
            _child(
                ResourceKind.ROLE_ASSIGNMENT,
                {
                    "role_assignment_name": role_assignment_name(
                        name,
                        assignment.principal_id,
                        assignment.role_definition_id_or_name,
                    ),
                    "principal_id": assignment.principal_id,
                    "principal_type": assignment.principal_type,
                    "role_definition_id": resolve_role_definition_id(
                        assignment.role_definition_id_or_name,
                        settings.subscription_id,
                    ),
                    "description": assignment.description,
                },
            )
        )
    return intents


def _private_endpoint_intent(
    name: str, config: StorageConfig
) -> ResourceIntent | None:
    endpoint = config.private_endpoint
    if endpoint is None:
        return None
    if not endpoint.subnet_id:
        raise MissingRequiredFieldError("private_endpoint.subnet_id")
    service = endpoint.service.value
    dns_zone_group = None
    if endpoint.private_dns_zone_id:
        dns_zone_group = {
            "private_dns_zone_group_name": "default",
            "private_dns_zone_configs": [
                {
                    "name": private_dns_zone_name(service).replace(".", "-"),
                    "private_dns_zone_id": endpoint.private_dns_zone_id,
                }
            ],
        }
    endpoint_name = endpoint.name or f"pep-{name}-{service}"
    return _child(
        ResourceKind.PRIVATE_ENDPOINT,
        {
            "private_endpoint_name": endpoint_name,
            "location": config.location,
            "subnet": {"id": endpoint.subnet_id},
            "connection_name": f"{endpoint_name}-connection",
            "group_ids": [service],
            "tags": dict(config.tags or {}),
            "private_dns_zone_group": dns_zone_group,
        },
    )


def plan(
    name: str,
    is_valid: bool,
    config: StorageConfig,
    settings: PlanSettings | None = None,
) -> list[ResourceIntent]:
    """
    Plan the resources for one storage account deployment.

    Args:
        name: Derived storage account name.
        is_valid: Validity flag from derive_storage_account_name.
        config: Account and child-service configuration.
        settings: Call-time values (fallback workspace, invalid-name policy);
            defaults to PlanSettings().

    Returns:
        Intents ordered StorageAccount, BlobService, QueueService,
        TableService, Diagnostics, Lock, RoleAssignment..., PrivateEndpoint,
        omitting the ones the configuration does not ask for. Empty when the
        name is invalid under the skip policy.

    Raises:
        InvalidNameLengthError: ``is_valid`` is False under the fail policy.
        MissingRequiredFieldError: tags, RBAC principal/role or private
            endpoint subnet is missing.
    """
    settings = settings or PlanSettings()
    if not is_valid:
        if settings.invalid_name_policy == InvalidNamePolicy.FAIL:
            raise InvalidNameLengthError(
                f"Storage account name {name!r} must be 3-24 characters, "
                f"got {len(name)}"
            )
        return []
    if config.tags is None:
        raise MissingRequiredFieldError("tags")

    services = [
        _blob_service_intent(config),
        _queue_service_intent(config),
        _table_service_intent(config),
    ]
    deployed = [
        service
        for service, intent in zip(["blob", "queue", "table"], services)
        if intent is not None
    ]
    intents = [
        _storage_account_intent(name, config),
        *services,
        _diagnostics_intent(name, config, settings, deployed),
        _lock_intent(name, config),
        *_role_assignment_intents(name, config, settings),
        _private_endpoint_intent(name, config),
    ]
    return [intent for intent in intents if intent is not None]
