# tests/core/test_pointer.py
"""Tests for the claim-check pointer codec."""

import pytest


class TestEncodePointer:
    def test_wire_format(self) -> None:
        from claimcheck.contracts import ClaimCheck
        from claimcheck.core.pointer import encode_pointer

        claim = ClaimCheck(namespace="ns1", container="my-bucket", key="notes.txt")
        assert encode_pointer(claim) == "/n/ns1/b/my-bucket/o/notes.txt"

    def test_key_with_slashes_kept_verbatim(self) -> None:
        from claimcheck.contracts import ClaimCheck
        from claimcheck.core.pointer import encode_pointer

        claim = ClaimCheck(namespace="ns", container="b", key="2024/06/report.csv")
        assert encode_pointer(claim) == "/n/ns/b/b/o/2024/06/report.csv"


class TestDecodePointer:
    def test_parses_fields(self) -> None:
        from claimcheck.core.pointer import decode_pointer

        claim = decode_pointer("/n/ns1/b/my-bucket/o/notes.txt")
        assert (claim.namespace, claim.container, claim.key) == ("ns1", "my-bucket", "notes.txt")

    def test_accepts_utf8_bytes(self) -> None:
        from claimcheck.core.pointer import decode_pointer

        claim = decode_pointer("/n/ns/b/bücket/o/résumé.pdf".encode())
        assert claim.container == "bücket"
        assert claim.key == "résumé.pdf"

    def test_key_keeps_everything_after_object_tag(self) -> None:
        from claimcheck.core.pointer import decode_pointer

        claim = decode_pointer("/n/ns/b/bucket/o/a/o/b/n/c")
        assert claim.container == "bucket"
        assert claim.key == "a/o/b/n/c"

    @pytest.mark.parametrize(
        ("value", "reason"),
        [
            ("not-a-pointer", "prefix"),
            ("", "prefix"),
            ("n/ns/b/bucket/o/key", "prefix"),
            ("/n//b/bucket/o/key", "empty namespace"),
            ("/n/ns", "missing '/b/'"),
            ("/n/ns/x/bucket/o/key", "expected '/b/'"),
            ("/n/ns/b", "expected '/b/'"),
            ("/n/ns/b//o/key", "empty container"),
            ("/n/ns/b/bucket", "missing '/o/'"),
            ("/n/ns/b/bucket/x/key", "expected '/o/'"),
            ("/n/ns/b/bucket/o", "expected '/o/'"),
            ("/n/ns/b/bucket/o/", "empty key"),
        ],
    )
    def test_malformed_values_rejected(self, value: str, reason: str) -> None:
        from claimcheck.contracts import MalformedPointerError
        from claimcheck.core.pointer import decode_pointer

        with pytest.raises(MalformedPointerError) as exc_info:
            decode_pointer(value)
        assert reason in exc_info.value.reason

    def test_missing_object_segment(self) -> None:
        """/n/ns/b/bucket carries no object part."""
        from claimcheck.contracts import MalformedPointerError
        from claimcheck.core.pointer import decode_pointer

        with pytest.raises(MalformedPointerError):
            decode_pointer("/n/ns/b/bucket")

    def test_invalid_utf8_rejected(self) -> None:
        from claimcheck.contracts import MalformedPointerError
        from claimcheck.core.pointer import decode_pointer

        with pytest.raises(MalformedPointerError, match="UTF-8"):
            decode_pointer(b"/n/ns/b/bucket/o/\xff\xfe")

    def test_malformed_error_is_claim_check_error(self) -> None:
        from claimcheck.contracts import ClaimCheckError
        from claimcheck.core.pointer import decode_pointer

        with pytest.raises(ClaimCheckError):
            decode_pointer("garbage")
