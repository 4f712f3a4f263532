"""Tests for the tag dispatcher and the three variant decoders."""
import struct
from datetime import datetime, timezone

import pytest

from sasdecode.account.constants import RecordTag
from sasdecode.account.decoders import (
    decode_account,
    decode_attestation,
    decode_credential,
    decode_schema,
    read_tag,
    try_decode_account,
)
from sasdecode.account.reader import ByteCursor
from sasdecode.account.records import (
    Attestation,
    Credential,
    EmptyBuffer,
    ExpiryOutOfRange,
    Identifier,
    InvalidUtf8,
    OutOfBounds,
    Schema,
    TruncatedRecord,
    UnknownTag,
)
from tests import builders
from tests.builders import pk


class TestDispatch:
    def test_empty_buffer(self):
        with pytest.raises(EmptyBuffer):
            decode_account(b"")

    @pytest.mark.parametrize("tag", [3, 7, 255])
    def test_unknown_tag(self, tag):
        with pytest.raises(UnknownTag) as exc:
            decode_account(bytes([tag]) + b"\x00" * 200)
        assert exc.value.tag == tag

    def test_unknown_tag_alone(self):
        with pytest.raises(UnknownTag):
            decode_account(b"\x09")

    def test_read_tag(self):
        assert read_tag(builders.schema()) is RecordTag.SCHEMA

    def test_try_decode_unknown_tag_returns_none(self):
        assert try_decode_account(b"\x05abc") is None

    def test_try_decode_propagates_truncation(self):
        with pytest.raises(TruncatedRecord):
            try_decode_account(b"\x00")

    def test_deterministic(self):
        buf = builders.attestation(data="x", expiry=1700000000)
        assert decode_account(buf) == decode_account(buf)

    def test_trailing_bytes_ignored(self):
        assert decode_account(builders.credential() + b"\x00" * 64) == decode_account(builders.credential())

    def test_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            decode_account(b"")


class TestCredential:
    def test_alice(self):
        buf = b"\x00" + bytes(32) + struct.pack("<I", 5) + b"alice" + struct.pack("<I", 0)
        rec = decode_account(buf)
        assert rec == Credential(
            authority=Identifier(bytes(32)), name="alice", authorized_signers=(),
        )

    def test_signers_in_order(self):
        rec = decode_account(builders.credential(signers=(pk(9), pk(8), pk(7))))
        assert isinstance(rec, Credential)
        assert [s.raw for s in rec.authorized_signers] == [pk(9), pk(8), pk(7)]

    def test_missing_signer(self):
        buf = builders.credential(signers=(pk(9), pk(8)))[:-1]
        with pytest.raises(TruncatedRecord) as exc:
            decode_account(buf)
        assert exc.value.tag is RecordTag.CREDENTIAL
        assert exc.value.field == "authorized_signers"
        assert exc.value.index == 2
        assert isinstance(exc.value.__cause__, OutOfBounds)

    def test_missing_count(self):
        buf = b"\x00" + pk(1) + builders.string("bob")
        with pytest.raises(TruncatedRecord) as exc:
            decode_account(buf)
        assert exc.value.field == "authorized_signers"

    def test_truncated_authority(self):
        with pytest.raises(TruncatedRecord) as exc:
            decode_account(b"\x00" + pk(1)[:10])
        assert exc.value.field == "authority"
        assert exc.value.index == 0

    def test_decoder_directly(self):
        cur = ByteCursor(builders.credential(name="issuer"), 1)
        assert decode_credential(cur).name == "issuer"
        assert cur.remaining == 0


class TestSchema:
    def test_fields(self):
        rec = decode_account(builders.schema(paused=1, version=3))
        assert rec == Schema(
            credential=Identifier(pk(2)),
            name="kyc",
            description="KYC check",
            layout="\x0c",
            field_names="verified",
            is_paused=True,
            version=3,
        )

    @pytest.mark.parametrize("paused,expected", [(0, False), (1, True), (2, False)])
    def test_is_paused_lenient(self, paused, expected):
        assert decode_account(builders.schema(paused=paused)).is_paused is expected

    def test_empty_strings(self):
        rec = decode_account(builders.schema(name="", description="", layout="", field_names=""))
        assert (rec.name, rec.description, rec.layout, rec.field_names) == ("", "", "", "")

    def test_missing_version(self):
        with pytest.raises(TruncatedRecord) as exc:
            decode_account(builders.schema()[:-1])
        assert exc.value.field == "version"
        assert exc.value.index == 6

    def test_string_length_overruns(self):
        buf = b"\x01" + pk(2) + struct.pack("<I", 1000) + b"abc"
        with pytest.raises(TruncatedRecord) as exc:
            decode_account(buf)
        assert exc.value.field == "name"

    def test_strict_utf8(self):
        buf = builders.schema(description=b"\xff\xfe")
        assert decode_account(buf).description == "\ufffd\ufffd"
        with pytest.raises(InvalidUtf8):
            decode_account(buf, strict_utf8=True)

    def test_decoder_directly(self):
        assert decode_schema(ByteCursor(builders.schema(), 1)).version == 1


class TestAttestation:
    def test_no_expiry(self):
        buf = (
            b"\x02" + pk(3) + pk(4) + pk(5) + struct.pack("<I", 0)
            + pk(6) + struct.pack("<q", 0) + pk(7)
        )
        rec = decode_account(buf)
        assert isinstance(rec, Attestation)
        assert rec.data == ""
        assert rec.expiry == 0
        assert rec.expiry_date is None
        assert not rec.expires
        assert rec.nonce == Identifier(pk(3))
        assert rec.credential == Identifier(pk(4))
        assert rec.schema == Identifier(pk(5))
        assert rec.signer == Identifier(pk(6))
        assert rec.token_account == Identifier(pk(7))

    def test_expiry_date(self):
        rec = decode_account(builders.attestation(expiry=1700000000, data="hello"))
        assert rec.data == "hello"
        assert rec.expiry_date == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
        assert rec.expires

    def test_negative_expiry(self):
        rec = decode_account(builders.attestation(expiry=-86400))
        assert rec.expiry_date == datetime(1969, 12, 31, tzinfo=timezone.utc)

    def test_missing_token_account(self):
        with pytest.raises(TruncatedRecord) as exc:
            decode_account(builders.attestation()[:-5])
        assert exc.value.tag is RecordTag.ATTESTATION
        assert exc.value.field == "token_account"
        assert exc.value.index == 6

    def test_missing_expiry(self):
        buf = builders.attestation()
        with pytest.raises(TruncatedRecord) as exc:
            decode_account(buf[:1 + 32 * 3 + 4 + 32 + 3])
        assert exc.value.field == "expiry"

    @pytest.mark.parametrize("cut", [1, 2, 33, 64, 97, 100, 101, 133, 140, 141, 172])
    def test_every_prefix_fails(self, cut):
        buf = builders.attestation(data="z")
        assert len(buf) == 174
        with pytest.raises(TruncatedRecord):
            decode_account(buf[:cut])

    def test_decoder_directly(self):
        cur = ByteCursor(builders.attestation(data="abc"), 1)
        assert decode_attestation(cur).data == "abc"

    def test_far_future_expiry_still_decodes(self):
        rec = decode_account(builders.attestation(expiry=10**12))
        assert rec.expiry == 10**12
        assert rec.expires
        with pytest.raises(ExpiryOutOfRange):
            rec.expiry_date
