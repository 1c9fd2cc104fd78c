"""
Storage account stack - Pulumi entrypoint.

Turns stack config into a deployed storage account in three steps:

- **Derive**: the storage account name comes from the workload name plus a
  fingerprint of (resource group, subscription), so it is globally unique and
  stable across runs.
- **Plan**: the planner decides which child resources (blob/queue/table
  services, diagnostics, lock, RBAC, private endpoint) to create and fills
  their defaults. An invalid name either fails the run (default) or yields an
  empty plan, per ``invalid_name_policy``.
- **Deploy**: StorageInfra realizes the plan with pulumi_azure_native.

Stack exports: storage_account_name, storage_account_name_valid,
resource_group_name, location, planned_resources, primary_endpoints.
"""

import pulumi

from components import StorageInfra, derive_storage_account_name, plan
from config import StackConfig


def _component_name(workload_name: str, environment: str, prefix: str) -> str:
    return f"{prefix}-{workload_name}-{environment}"


def main():
    """
    Derive the name, plan the resources, deploy them and export outputs.

    Reads config, derives the storage account name, plans under the
    configured invalid-name policy, instantiates StorageInfra when the plan
    is non-empty, and exports the name, its validity and the endpoints.
    """
    config = StackConfig.from_pulumi_config(pulumi.Config())

    derived = derive_storage_account_name(
        config.workload_name, config.resource_group_name, config.subscription_id
    )
    pulumi.log.info(
        f"Derived storage account name '{derived.sanitized}' (valid={derived.is_valid})"
    )

    intents = plan(
        derived.sanitized, derived.is_valid, config.storage, config.plan_settings
    )
    planned = [intent.kind.value for intent in intents]

    outputs: dict = {
        "storage_account_name": derived.sanitized,
        "storage_account_name_valid": derived.is_valid,
        "resource_group_name": config.resource_group_name,
        "location": config.location,
        "planned_resources": planned,
    }

    if not derived.is_valid:
        pulumi.log.warn(
            f"Storage account name '{derived.sanitized}' is not 3-24 characters; "
            "invalid_name_policy is 'skip', so nothing will be deployed"
        )
    elif intents:
        pulumi.log.info(f"Planned resources: {', '.join(planned)}")
        infra = StorageInfra(
            name=_component_name(config.workload_name, config.environment, "storage"),
            resource_group_name=config.resource_group_name,
            location=config.location,
            intents=intents,
        )
        outputs["primary_endpoints"] = infra.primary_endpoints

    for output_name, value in outputs.items():
        pulumi.export(output_name, value)


if __name__ == "__main__":
    main()
