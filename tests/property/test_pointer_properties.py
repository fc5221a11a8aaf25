# tests/property/test_pointer_properties.py
"""Property-based tests for the pointer codec.

The parser must be the exact inverse of the encoder for every ClaimCheck
that can be constructed, and must never raise anything but
MalformedPointerError for arbitrary input.
"""

from hypothesis import given
from hypothesis import strategies as st

from claimcheck.contracts import ClaimCheck, MalformedPointerError
from claimcheck.core.pointer import decode_pointer, encode_pointer

# Non-empty text without "/" (namespace and container)
segment = st.text(alphabet=st.characters(blacklist_characters="/", blacklist_categories=("Cs",)), min_size=1, max_size=40)

# Non-empty text that may contain "/" (object key)
key_text = st.text(alphabet=st.characters(blacklist_categories=("Cs",)), min_size=1, max_size=80)


@given(namespace=segment, container=segment, key=key_text)
def test_decode_inverts_encode(namespace: str, container: str, key: str) -> None:
    claim = ClaimCheck(namespace=namespace, container=container, key=key)
    assert decode_pointer(encode_pointer(claim)) == claim


@given(namespace=segment, container=segment, key=key_text)
def test_decode_accepts_utf8_wire_bytes(namespace: str, container: str, key: str) -> None:
    claim = ClaimCheck(namespace=namespace, container=container, key=key)
    assert decode_pointer(encode_pointer(claim).encode("utf-8")) == claim


@given(value=st.text(max_size=200))
def test_arbitrary_text_parses_or_raises_malformed(value: str) -> None:
    try:
        claim = decode_pointer(value)
    except MalformedPointerError:
        return
    assert encode_pointer(claim) == value


@given(value=st.binary(max_size=200))
def test_arbitrary_bytes_parse_or_raise_malformed(value: bytes) -> None:
    try:
        decode_pointer(value)
    except MalformedPointerError:
        pass
