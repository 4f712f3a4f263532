"""Identifier, decoded record dataclasses, and decode errors for SAS accounts."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

import base58

from sasdecode.account.constants import IDENTIFIER_SIZE, NO_EXPIRY, RecordTag, TAG_NAMES

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class DecodeError(ValueError):
    """Base class for structural decode failures."""


class EmptyBuffer(DecodeError):
    def __init__(self):
        super().__init__("Account data is empty")


class UnknownTag(DecodeError):
    """Tag byte outside the known record kinds."""

    def __init__(self, tag: int):
        self.tag = tag
        super().__init__(f"Unknown tag: {tag}")


class OutOfBounds(DecodeError):
    """A read would run past the end of the buffer."""

    def __init__(self, offset: int, wanted: int, available: int):
        self.offset = offset
        self.wanted = wanted
        self.available = available
        super().__init__(
            f"Read of {wanted} bytes at offset {offset} "
            f"exceeds buffer ({available} bytes remaining)"
        )


class TruncatedRecord(DecodeError):
    """OutOfBounds attributed to the record field being read."""

    def __init__(self, tag: RecordTag, field: str, index: int):
        self.tag = tag
        self.field = field
        self.index = index
        super().__init__(f"{TAG_NAMES[tag]} truncated at field {index} ({field})")


class InvalidUtf8(DecodeError):
    def __init__(self, offset: int):
        self.offset = offset
        super().__init__(f"String at offset {offset} is not valid UTF-8")


class ExpiryOutOfRange(DecodeError):
    def __init__(self, expiry: int):
        self.expiry = expiry
        super().__init__(f"Expiry {expiry} is outside the representable date range")


@dataclass(frozen=True, slots=True)
class Identifier:
    """A 32-byte public key, displayed as base-58."""
    raw: bytes

    def __post_init__(self):
        if len(self.raw) != IDENTIFIER_SIZE:
            raise ValueError(f"Identifier must be {IDENTIFIER_SIZE} bytes, got {len(self.raw)}")

    @classmethod
    def from_base58(cls, text: str) -> Identifier:
        """Parse a base-58 address. Raises ValueError on bad characters or length."""
        return cls(base58.b58decode(text.strip()))

    def to_base58(self) -> str:
        return base58.b58encode(self.raw).decode("ascii")

    def __str__(self) -> str:
        return self.to_base58()

    def __repr__(self) -> str:
        return f"Identifier({self.to_base58()!r})"


@dataclass(frozen=True, slots=True)
class Credential:
    authority: Identifier
    name: str
    authorized_signers: tuple[Identifier, ...]

    tag = RecordTag.CREDENTIAL


@dataclass(frozen=True, slots=True)
class Schema:
    credential: Identifier
    name: str
    description: str
    layout: str
    field_names: str
    is_paused: bool
    version: int

    tag = RecordTag.SCHEMA


@dataclass(frozen=True, slots=True)
class Attestation:
    nonce: Identifier
    credential: Identifier
    schema: Identifier
    data: str
    signer: Identifier
    expiry: int                       # seconds since epoch, 0 = never
    token_account: Identifier

    tag = RecordTag.ATTESTATION

    @property
    def expires(self) -> bool:
        return self.expiry != NO_EXPIRY

    @property
    def expiry_date(self) -> Optional[datetime]:
        """UTC expiry, None if the attestation never expires.

        Raises ExpiryOutOfRange past year 9999; format_expiry still renders those.
        """
        return expiry_to_datetime(self.expiry)


Record = Union[Credential, Schema, Attestation]


def expiry_to_datetime(expiry: int) -> Optional[datetime]:
    """Convert a stored expiry to a UTC datetime. 0 means no expiry."""
    if expiry == NO_EXPIRY:
        return None
    try:
        return _EPOCH + timedelta(seconds=expiry)
    except OverflowError as e:
        raise ExpiryOutOfRange(expiry) from e


def format_timestamp(dt: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a Z suffix."""
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _civil_from_days(days: int) -> tuple[int, int, int]:
    """Proleptic Gregorian (year, month, day) for days since 1970-01-01, any year."""
    z = days + 719468
    era = z // 146097
    doe = z - era * 146097
    yoe = (doe - doe // 1460 + doe // 36524 - doe // 146096) // 365
    doy = doe - (365 * yoe + yoe // 4 - yoe // 100)
    mp = (5 * doy + 2) // 153
    day = doy - (153 * mp + 2) // 5 + 1
    month = mp + 3 if mp < 10 else mp - 9
    year = yoe + era * 400 + (1 if month <= 2 else 0)
    return year, month, day


def format_expiry(expiry: int) -> Optional[str]:
    """ISO-8601 rendering of a stored expiry, None for no expiry.

    Years outside 0000-9999 use the expanded +YYYYYY / -YYYYYY form.
    """
    if expiry == NO_EXPIRY:
        return None
    days, secs = divmod(expiry, 86400)
    year, month, day = _civil_from_days(days)
    if 0 <= year <= 9999:
        year_text = f"{year:04d}"
    else:
        year_text = f"{'+' if year > 0 else '-'}{abs(year):06d}"
    hour, rem = divmod(secs, 3600)
    minute, second = divmod(rem, 60)
    return f"{year_text}-{month:02d}-{day:02d}T{hour:02d}:{minute:02d}:{second:02d}.000Z"
