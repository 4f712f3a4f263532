"""Tag-dispatched decoders for SAS account data.

Account layout: 1 tag byte followed by the variant's fields, read in order:

Credential (tag 0):  authority(32) name(str) authorized_signers(u32 count + 32*n)
Schema (tag 1):      credential(32) name(str) description(str) layout(str)
                     field_names(str) is_paused(u8) version(u8)
Attestation (tag 2): nonce(32) credential(32) schema(32) data(str) signer(32)
                     expiry(i64) token_account(32)

Strings are u32 LE length + UTF-8 bytes. Bytes after the last field are ignored.
"""
from __future__ import annotations

from typing import Callable, Optional

from sasdecode.account.constants import TAG_SIZE, RecordTag
from sasdecode.account.reader import (
    ByteCursor,
    read_flag,
    read_identifier,
    read_identifier_vec,
    read_string,
)
from sasdecode.account.records import (
    Attestation,
    Credential,
    EmptyBuffer,
    OutOfBounds,
    Record,
    Schema,
    TruncatedRecord,
    UnknownTag,
)


_FIELD_READERS: dict[str, Callable[[ByteCursor, bool], object]] = {
    "pubkey": lambda cur, strict: read_identifier(cur),
    "pubkey_vec": lambda cur, strict: read_identifier_vec(cur),
    "str": read_string,
    "bool": lambda cur, strict: read_flag(cur),
    "u8": lambda cur, strict: cur.read_u8(),
    "i64": lambda cur, strict: cur.read_i64_le(),
}

# (field name, field type) in wire order
CREDENTIAL_LAYOUT = (
    ("authority", "pubkey"),
    ("name", "str"),
    ("authorized_signers", "pubkey_vec"),
)

SCHEMA_LAYOUT = (
    ("credential", "pubkey"),
    ("name", "str"),
    ("description", "str"),
    ("layout", "str"),
    ("field_names", "str"),
    ("is_paused", "bool"),
    ("version", "u8"),
)

ATTESTATION_LAYOUT = (
    ("nonce", "pubkey"),
    ("credential", "pubkey"),
    ("schema", "pubkey"),
    ("data", "str"),
    ("signer", "pubkey"),
    ("expiry", "i64"),
    ("token_account", "pubkey"),
)


def _read_fields(cursor: ByteCursor, tag: RecordTag, layout: tuple, strict_utf8: bool) -> dict:
    """Read every field of a layout, attributing bounds failures to the field."""
    values = {}
    for index, (name, field_type) in enumerate(layout):
        try:
            values[name] = _FIELD_READERS[field_type](cursor, strict_utf8)
        except OutOfBounds as e:
            raise TruncatedRecord(tag, name, index) from e
    return values


def decode_credential(cursor: ByteCursor, strict_utf8: bool = False) -> Credential:
    return Credential(**_read_fields(cursor, RecordTag.CREDENTIAL, CREDENTIAL_LAYOUT, strict_utf8))


def decode_schema(cursor: ByteCursor, strict_utf8: bool = False) -> Schema:
    return Schema(**_read_fields(cursor, RecordTag.SCHEMA, SCHEMA_LAYOUT, strict_utf8))


def decode_attestation(cursor: ByteCursor, strict_utf8: bool = False) -> Attestation:
    values = _read_fields(cursor, RecordTag.ATTESTATION, ATTESTATION_LAYOUT, strict_utf8)
    return Attestation(**values)


_DECODERS: dict[RecordTag, Callable[[ByteCursor, bool], Record]] = {
    RecordTag.CREDENTIAL: decode_credential,
    RecordTag.SCHEMA: decode_schema,
    RecordTag.ATTESTATION: decode_attestation,
}


def read_tag(data: bytes) -> RecordTag:
    """Return the record kind of an account buffer without decoding it."""
    if len(data) == 0:
        raise EmptyBuffer()
    try:
        return RecordTag(data[0])
    except ValueError:
        raise UnknownTag(data[0]) from None


def decode_account(data: bytes, strict_utf8: bool = False) -> Record:
    """Decode a full SAS account buffer into a Credential, Schema or Attestation.

    Raises EmptyBuffer, UnknownTag, TruncatedRecord, and in strict mode
    InvalidUtf8. A record is either fully decoded or not returned at all.
    """
    tag = read_tag(data)
    return _DECODERS[tag](ByteCursor(data, TAG_SIZE), strict_utf8)


def try_decode_account(data: bytes, strict_utf8: bool = False) -> Optional[Record]:
    """Like decode_account, but returns None for accounts of an unknown kind."""
    try:
        return decode_account(data, strict_utf8)
    except UnknownTag:
        return None
