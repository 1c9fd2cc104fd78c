"""
Pure helpers for storage-account naming. Testable without Pulumi runtime.

Used by the planner (derive_storage_account_name, private_dns_zone_name,
role_assignment_name) and by the entrypoint to gate deployment on the
validity flag. No Pulumi types; all functions accept and return plain Python
types so they can be unit-tested without a Pulumi stack.
"""

import hashlib
import re
import uuid
from dataclasses import dataclass

# Azure storage account names: 3-24 chars, lowercase alphanumeric only.
STORAGE_ACCOUNT_MIN_LEN: int = 3
STORAGE_ACCOUNT_MAX_LEN: int = 24
FINGERPRINT_LEN: int = 5

_DISALLOWED_CHARS = re.compile(r"[^a-z0-9]")

# Fixed namespace so role assignment names are stable across runs and machines.
_ROLE_ASSIGNMENT_NAMESPACE = uuid.UUID("6f1c5a0e-8d3b-4c52-9a7e-2b1d4e6f8a90")


@dataclass(frozen=True)
class DerivedName:
    """
    Storage account name produced by derive_storage_account_name.

    Attributes:
        sanitized: Lowercase alphanumeric name (workload token + fingerprint).
        is_valid: True iff the name length is within Azure's 3-24 bounds.
    """

    sanitized: str
    is_valid: bool


@dataclass(frozen=True)
class WorkloadIdentity:
    """
    Inputs that identify one deployment of a workload.

    Attributes:
        workload_name: Short workload token (2-10 chars expected, not enforced).
        scope_id: Deployment scope, e.g. the resource group name.
        subscription_id: Azure subscription the account lives in.
    """

    workload_name: str
    scope_id: str
    subscription_id: str

    def derive(self) -> DerivedName:
        return derive_storage_account_name(
            self.workload_name, self.scope_id, self.subscription_id
        )


def sanitize_workload_name(
    workload_name: str,
) -> str:
    """
    Lowercase and strip every character outside [a-z0-9].

    Hyphens, underscores, spaces, punctuation and non-ASCII letters are all
    removed, so the result always fits the storage account charset.
    """
    return _DISALLOWED_CHARS.sub("", workload_name.lower())


def fingerprint(
    *parts: str,
    length: int = FINGERPRINT_LEN,
) -> str:
    """
    Return a short deterministic lowercase hex fingerprint of ``parts``.

    Parts are joined with "|" before hashing so ("a", "bc") and ("ab", "c")
    fingerprint differently. Not a security boundary; only stable.
    """
    digest = hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()
    return digest[:length]


def is_valid_storage_account_name(
    name: str,
) -> bool:
    return STORAGE_ACCOUNT_MIN_LEN <= len(name) <= STORAGE_ACCOUNT_MAX_LEN


def derive_storage_account_name(
    workload_name: str,
    scope_id: str,
    subscription_id: str,
) -> DerivedName:
    """
    Produce a globally unique storage account name for a workload.

    The workload name is sanitized and suffixed with a 5-char fingerprint of
    (scope_id, subscription_id). Never raises: an out-of-bounds length is
    reported through ``is_valid`` and the caller decides whether to proceed.

    Args:
        workload_name: Human-chosen workload token (e.g. "data-app").
        scope_id: Deployment scope identifier (e.g. resource group name).
        subscription_id: Azure subscription id.

    Returns:
        DerivedName (e.g. DerivedName("dataapp1a2b3", True)).
    """
    name = sanitize_workload_name(workload_name) + fingerprint(
        scope_id, subscription_id
    )
    return DerivedName(sanitized=name, is_valid=is_valid_storage_account_name(name))


def role_assignment_name(
    storage_account_name: str,
    principal_id: str,
    role_definition_id_or_name: str,
) -> str:
    """
    Return a deterministic GUID for a role assignment.

    ARM requires role assignment names to be GUIDs; deriving it from the
    (account, principal, role) triple means re-planning the same assignment
    targets the same resource instead of creating a duplicate.
    """
    key = f"{storage_account_name}|{principal_id}|{role_definition_id_or_name}"
    return str(uuid.uuid5(_ROLE_ASSIGNMENT_NAMESPACE, key))


def private_dns_zone_name(
    service: str,
) -> str:
    """
    Return the private DNS zone for a storage sub-resource.

    e.g. "blob" -> "privatelink.blob.core.windows.net".
    """
    return f"privatelink.{service}.core.windows.net"
