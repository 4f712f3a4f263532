"""Export decoded records as JSON."""
from __future__ import annotations

import json
from typing import Iterable

from sasdecode.account.records import Attestation, Credential, Record, Schema, format_expiry
from sasdecode.account.constants import TAG_NAMES


def record_to_dict(record: Record) -> dict:
    """Plain dict with base-58 identifiers and a "type" discriminator."""
    entry: dict = {"type": TAG_NAMES[record.tag]}
    if isinstance(record, Credential):
        entry.update({
            "authority": str(record.authority),
            "name": record.name,
            "authorizedSigners": [str(s) for s in record.authorized_signers],
        })
    elif isinstance(record, Schema):
        entry.update({
            "credential": str(record.credential),
            "name": record.name,
            "description": record.description,
            "layout": record.layout,
            "fieldNames": record.field_names,
            "isPaused": record.is_paused,
            "version": record.version,
        })
    elif isinstance(record, Attestation):
        entry.update({
            "nonce": str(record.nonce),
            "credential": str(record.credential),
            "schema": str(record.schema),
            "data": record.data,
            "signer": str(record.signer),
            # i64 kept as a string so JSON consumers don't lose precision
            "expiry": str(record.expiry),
            "expiryDate": format_expiry(record.expiry),
            "tokenAccount": str(record.token_account),
        })
    else:
        raise TypeError(f"Not a SAS record: {type(record).__name__}")
    return entry


def export_json(records: Record | Iterable[Record]) -> str:
    """Export one record as an object, or several as an array."""
    if isinstance(records, (Credential, Schema, Attestation)):
        return json.dumps(record_to_dict(records), indent=2, ensure_ascii=False)
    return json.dumps([record_to_dict(r) for r in records], indent=2, ensure_ascii=False)
