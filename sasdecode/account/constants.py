"""SAS account layout constants, tags, and well-known program ids."""
import enum


class RecordTag(int, enum.Enum):
    """Discriminator byte at offset 0 of every SAS account."""
    CREDENTIAL = 0
    SCHEMA = 1
    ATTESTATION = 2


# Display names used in text/JSON output
TAG_NAMES = {
    RecordTag.CREDENTIAL: "Credential",
    RecordTag.SCHEMA: "Schema",
    RecordTag.ATTESTATION: "Attestation",
}

# Field widths
TAG_SIZE = 1
IDENTIFIER_SIZE = 32
LENGTH_PREFIX_SIZE = 4    # u32 LE before strings and vectors
EXPIRY_SIZE = 8           # i64 LE seconds since epoch

# Attestation expiry value meaning "never expires"
NO_EXPIRY = 0

# Well-known program ids (base-58)
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"
SAS_PROGRAM_ID = "22zoJMtdu4tQc2PzL74ZUT7FrwgB1Udec8DdW4yw4BdG"

# Parsed system-program instruction type that allocates a new account
CREATE_ACCOUNT = "createAccount"
