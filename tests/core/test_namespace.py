# tests/core/test_namespace.py
"""Tests for namespace resolution."""

import pytest

from tests.fixtures import RecordingObjectStore


class TestResolveNamespace:
    def test_returns_namespace(self, store: RecordingObjectStore) -> None:
        from claimcheck.core.namespace import resolve_namespace

        assert resolve_namespace(store, "ocid1.compartment.oc1..aaa") == "ns1"
        assert store.calls == [("resolve_namespace", "ocid1.compartment.oc1..aaa")]

    @pytest.mark.parametrize("status", [0, 401, 404, 500])
    def test_non_success_status_raises(self, store: RecordingObjectStore, status: int) -> None:
        from claimcheck.contracts import NamespaceResolutionFailedError
        from claimcheck.core.namespace import resolve_namespace

        store.namespace_status = status
        with pytest.raises(NamespaceResolutionFailedError) as exc_info:
            resolve_namespace(store, "compartment")
        assert exc_info.value.status == status

    def test_empty_namespace_raises(self) -> None:
        from claimcheck.contracts import NamespaceResolutionFailedError
        from claimcheck.core.namespace import resolve_namespace

        with pytest.raises(NamespaceResolutionFailedError, match="empty namespace"):
            resolve_namespace(RecordingObjectStore(namespace=""), "compartment")
