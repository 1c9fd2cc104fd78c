"""
Azure storage account stack: realizes a resource plan with pulumi_azure_native.

This component creates a resource group, the storage account described by the
plan's root intent, and one group of Azure resources per child intent: blob,
queue and table services with their containers/queues/tables, diagnostic
settings, a management lock, role assignments, and a private endpoint with an
optional private DNS zone group. Intents come from ``components._planner.plan``
and already carry every default, so this module makes no policy decisions:
it only maps intents to resources and ``depends_on`` kinds to resource
dependencies.

The ``primary_endpoints`` output is an ``Output[dict]`` so callers can export
the blob/queue/table/dfs/web/file endpoints once the account exists.
"""

from typing import Callable

import pulumi
import pulumi_azure_native as azure_native

from components._planner import ResourceIntent, ResourceKind

ID: str = "storagestack:azure:StorageInfra"


class StorageInfra(pulumi.ComponentResource):
    """
    Storage account plus the child resources listed in a plan.

    Resources: ResourceGroup, StorageAccount, and per intent kind:
    BlobServiceProperties + BlobContainer, QueueServiceProperties + Queue,
    TableServiceProperties + Table, DiagnosticSetting (account and each
    deployed service), ManagementLockByScope, RoleAssignment, PrivateEndpoint
    + PrivateDnsZoneGroup.
    """

    def __init__(
        self,
        name: str,
        resource_group_name: str,
        location: str,
        intents: list[ResourceIntent],
    ):
        """
        Create the resource group, storage account and planned children.

        Args:
            name: Pulumi resource name prefix for every child resource.
            resource_group_name: Azure resource group to create and deploy into.
            location: Azure region for the resource group.
            intents: Output of plan(); the first intent must be the
                StorageAccount.

        Outputs (set on self, registered for the component):
            primary_endpoints: Service endpoints of the storage account.
        """
        super().__init__(ID, name)

        if not intents or intents[0].kind != ResourceKind.STORAGE_ACCOUNT:
            raise ValueError("StorageInfra requires a plan rooted at a StorageAccount")

        self._name = name
        self._created: dict[ResourceKind, pulumi.Resource] = {}

        # Child resources get parent=self so Pulumi builds a proper hierarchy
        # and groups them under the component in the UI.
        child_opts = pulumi.ResourceOptions(parent=self)

        self.resource_group = azure_native.resources.ResourceGroup(
            resource_name=f"{name}-rg",
            resource_group_name=resource_group_name,
            location=location,
            opts=child_opts,
        )

        self.storage_account = azure_native.storage.StorageAccount(
            resource_name=f"{name}-sa",
            resource_group_name=self.resource_group.name,
            opts=child_opts,
            **intents[0].params,
        )
        self._created[ResourceKind.STORAGE_ACCOUNT] = self.storage_account

        builders: dict[ResourceKind, Callable[[ResourceIntent], pulumi.Resource]] = {
            ResourceKind.BLOB_SERVICE: self._blob_service,
            ResourceKind.QUEUE_SERVICE: self._queue_service,
            ResourceKind.TABLE_SERVICE: self._table_service,
            ResourceKind.DIAGNOSTICS: self._diagnostics,
            ResourceKind.LOCK: self._lock,
            ResourceKind.ROLE_ASSIGNMENT: self._role_assignment,
            ResourceKind.PRIVATE_ENDPOINT: self._private_endpoint,
        }
        for intent in intents[1:]:
            self._created[intent.kind] = builders[intent.kind](intent)

        self.primary_endpoints: pulumi.Output[dict] = (
            self.storage_account.primary_endpoints.apply(
                lambda e: {
                    "blob": e.blob,
                    "queue": e.queue,
                    "table": e.table,
                    "dfs": e.dfs,
                    "web": e.web,
                    "file": e.file,
                }
            )
        )
        self.register_outputs({"primary_endpoints": self.primary_endpoints})

    def _opts(
        self,
        intent: ResourceIntent,
        *extra: pulumi.Resource,
    ) -> pulumi.ResourceOptions:
        depends_on = [self._created[kind] for kind in intent.depends_on]
        return pulumi.ResourceOptions(parent=self, depends_on=[*depends_on, *extra])

    def _account_args(self) -> dict:
        return {
            "account_name": self.storage_account.name,
            "resource_group_name": self.resource_group.name,
        }

    def _blob_service(self, intent: ResourceIntent) -> pulumi.Resource:
        params = dict(intent.params)
        containers = params.pop("containers")
        service = azure_native.storage.BlobServiceProperties(
            resource_name=f"{self._name}-blob",
            opts=self._opts(intent),
            **self._account_args(),
            **params,
        )
        for container in containers:
            azure_native.storage.BlobContainer(
                resource_name=f"{self._name}-blob-{container['container_name']}",
                opts=self._opts(intent, service),
                **self._account_args(),
                **container,
            )
        return service

    def _queue_service(self, intent: ResourceIntent) -> pulumi.Resource:
        params = dict(intent.params)
        queues = params.pop("queues")
        service = azure_native.storage.QueueServiceProperties(
            resource_name=f"{self._name}-queue",
            opts=self._opts(intent),
            **self._account_args(),
            **params,
        )
        for queue in queues:
            azure_native.storage.Queue(
                resource_name=f"{self._name}-queue-{queue['queue_name']}",
                opts=self._opts(intent, service),
                **self._account_args(),
                **queue,
            )
        return service

    def _table_service(self, intent: ResourceIntent) -> pulumi.Resource:
        params = dict(intent.params)
        tables = params.pop("tables")
        service = azure_native.storage.TableServiceProperties(
            resource_name=f"{self._name}-table",
            opts=self._opts(intent),
            **self._account_args(),
            **params,
        )
        for table in tables:
            azure_native.storage.Table(
                resource_name=f"{self._name}-table-{table['table_name']}",
                opts=self._opts(intent, service),
                **self._account_args(),
                **table,
            )
        return service

    def _diagnostics(self, intent: ResourceIntent) -> pulumi.Resource:
        params = intent.params
        # The account only emits metrics; logs live on each service.
        setting = azure_native.monitor.DiagnosticSetting(
            resource_name=f"{self._name}-diag",
            name=params["name"],
            resource_uri=self.storage_account.id,
            workspace_id=params["workspace_id"],
            metrics=params["metrics"],
            opts=self._opts(intent),
        )
        service_kinds = {
            "blob": ResourceKind.BLOB_SERVICE,
            "queue": ResourceKind.QUEUE_SERVICE,
            "table": ResourceKind.TABLE_SERVICE,
        }
        for target in params["services"]:
            service = target["service"]
            azure_native.monitor.DiagnosticSetting(
                resource_name=f"{self._name}-diag-{service}",
                name=f"{params['name']}-{service}",
                resource_uri=pulumi.Output.concat(
                    self.storage_account.id, f"/{service}Services/default"
                ),
                workspace_id=params["workspace_id"],
                logs=target["logs"],
                metrics=target["metrics"],
                opts=self._opts(intent, self._created[service_kinds[service]]),
            )
        return setting

    def _lock(self, intent: ResourceIntent) -> pulumi.Resource:
        return azure_native.authorization.ManagementLockByScope(
            resource_name=f"{self._name}-lock",
            scope=self.storage_account.id,
            opts=self._opts(intent),
            **intent.params,
        )

    def _role_assignment(self, intent: ResourceIntent) -> pulumi.Resource:
        return azure_native.authorization.RoleAssignment(
            resource_name=f"{self._name}-ra-{intent.params['role_assignment_name']}",
            scope=self.storage_account.id,
            opts=self._opts(intent),
            **intent.params,
        )

    def _private_endpoint(self, intent: ResourceIntent) -> pulumi.Resource:
        params = dict(intent.params)
        dns_zone_group = params.pop("private_dns_zone_group")
        connection = azure_native.network.PrivateLinkServiceConnectionArgs(
            name=params.pop("connection_name"),
            private_link_service_id=self.storage_account.id,
            group_ids=params.pop("group_ids"),
        )
        endpoint = azure_native.network.PrivateEndpoint(
            resource_name=f"{self._name}-pep",
            resource_group_name=self.resource_group.name,
            private_link_service_connections=[connection],
            opts=self._opts(intent),
            **params,
        )
        # Only linked when the caller supplied a private DNS zone.
        if dns_zone_group:
            azure_native.network.PrivateDnsZoneGroup(
                resource_name=f"{self._name}-pep-dns",
                resource_group_name=self.resource_group.name,
                private_endpoint_name=endpoint.name,
                opts=self._opts(intent, endpoint),
                **dns_zone_group,
            )
        return endpoint
