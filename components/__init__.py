"""
Storage account stack components.

The pure naming and planning code is kept apart from the Pulumi component so
it can be tested without a Pulumi runtime:

- **derive_storage_account_name**: workload name + scope to a sanitized,
  globally unique storage account name and a validity flag.
- **plan**: storage configuration to an ordered list of ResourceIntent
  records with defaults filled in.
- **StorageInfra**: ComponentResource that realizes a plan with
  pulumi_azure_native; exposes primary_endpoints.
"""

from components._helpers import DerivedName, WorkloadIdentity, derive_storage_account_name
from components._planner import ResourceIntent, ResourceKind, plan
from components.azure import StorageInfra

__all__ = [
    "DerivedName",
    "ResourceIntent",
    "ResourceKind",
    "StorageInfra",
    "WorkloadIdentity",
    "derive_storage_account_name",
    "plan",
]
