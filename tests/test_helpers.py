"""Tests for pure naming helpers"""

import re

from components import _helpers


class TestSanitizeWorkloadName:
    def test_lowercases_and_strips_hyphens(self):
        assert _helpers.sanitize_workload_name("My-Workload") == "myworkload"

    def test_strips_underscores_spaces_and_punctuation(self):
        assert _helpers.sanitize_workload_name("data_app v2.0!") == "dataappv20"

    def test_strips_non_ascii_letters(self):
        assert _helpers.sanitize_workload_name("Café") == "caf"

    def test_keeps_digits(self):
        assert _helpers.sanitize_workload_name("app01") == "app01"


class TestFingerprint:
    def test_is_five_lowercase_hex_chars(self):
        assert re.fullmatch(r"[0-9a-f]{5}", _helpers.fingerprint("rg1", "sub1"))

    def test_is_stable(self):
        assert _helpers.fingerprint("rg1", "sub1") == _helpers.fingerprint("rg1", "sub1")

    def test_depends_on_every_part(self):
        assert _helpers.fingerprint("rg1", "sub1") != _helpers.fingerprint("rg2", "sub1")
        assert _helpers.fingerprint("rg1", "sub1") != _helpers.fingerprint("rg1", "sub2")

    def test_parts_are_separated(self):
        assert _helpers.fingerprint("a", "bc") != _helpers.fingerprint("ab", "c")


class TestDeriveStorageAccountName:
    def test_example_workload(self):
        derived = _helpers.derive_storage_account_name("dataapp", "rg1", "sub1")
        assert len(derived.sanitized) == 12
        assert derived.sanitized.startswith("dataapp")
        assert derived.sanitized[7:] == _helpers.fingerprint("rg1", "sub1")
        assert derived.is_valid is True

    def test_is_idempotent(self):
        first = _helpers.derive_storage_account_name("My-App", "rg1", "sub1")
        second = _helpers.derive_storage_account_name("My-App", "rg1", "sub1")
        assert first == second

    def test_output_is_lowercase_alphanumeric(self):
        derived = _helpers.derive_storage_account_name("My-Workload", "rg", "sub")
        assert re.fullmatch(r"[a-z0-9]+", derived.sanitized)

    def test_punctuation_is_stripped_not_kept(self):
        derived = _helpers.derive_storage_account_name("my_app x.y", "rg", "sub")
        assert derived.sanitized.startswith("myappxy")
        assert len(derived.sanitized) == len("myappxy") + 5

    def test_too_long_is_flagged_not_raised(self):
        derived = _helpers.derive_storage_account_name("a" * 20, "rg", "sub")
        assert len(derived.sanitized) == 25
        assert derived.is_valid is False

    def test_longest_valid_name(self):
        derived = _helpers.derive_storage_account_name("a" * 19, "rg", "sub")
        assert len(derived.sanitized) == 24
        assert derived.is_valid is True

    def test_empty_workload_still_derives(self):
        derived = _helpers.derive_storage_account_name("--", "rg", "sub")
        assert len(derived.sanitized) == 5
        assert derived.is_valid is True

    def test_validity_matches_length_bounds(self):
        for length in range(0, 30):
            derived = _helpers.derive_storage_account_name("x" * length, "rg", "sub")
            assert derived.is_valid == (3 <= len(derived.sanitized) <= 24)

    def test_workload_identity_derives_same_name(self):
        identity = _helpers.WorkloadIdentity("dataapp", "rg1", "sub1")
        assert identity.derive() == _helpers.derive_storage_account_name(
            "dataapp", "rg1", "sub1"
        )


class TestIsValidStorageAccountName:
    def test_bounds(self):
        assert not _helpers.is_valid_storage_account_name("ab")
        assert _helpers.is_valid_storage_account_name("abc")
        assert _helpers.is_valid_storage_account_name("a" * 24)
        assert not _helpers.is_valid_storage_account_name("a" * 25)


class TestRoleAssignmentName:
    def test_is_deterministic_guid(self):
        first = _helpers.role_assignment_name("acct", "principal", "Reader")
        second = _helpers.role_assignment_name("acct", "principal", "Reader")
        assert first == second
        assert re.fullmatch(r"[0-9a-f-]{36}", first)

    def test_differs_per_principal_and_role(self):
        base = _helpers.role_assignment_name("acct", "p1", "Reader")
        assert base != _helpers.role_assignment_name("acct", "p2", "Reader")
        assert base != _helpers.role_assignment_name("acct", "p1", "Owner")
        assert base != _helpers.role_assignment_name("other", "p1", "Reader")


class TestPrivateDnsZoneName:
    def test_blob(self):
        assert _helpers.private_dns_zone_name("blob") == "privatelink.blob.core.windows.net"

    def test_dfs(self):
        assert _helpers.private_dns_zone_name("dfs") == "privatelink.dfs.core.windows.net"
