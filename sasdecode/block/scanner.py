"""Find accounts created for the SAS program inside a jsonParsed block."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from sasdecode.account.constants import CREATE_ACCOUNT, SAS_PROGRAM_ID, SYSTEM_PROGRAM_ID
from sasdecode.account.records import Identifier


@dataclass(frozen=True, slots=True)
class CreatedAccount:
    """A system-program createAccount instruction owned by the target program."""
    address: Identifier
    owner: str
    tx_index: int          # position in block.transactions
    group_index: int       # position in meta.innerInstructions
    ix_index: int          # position in the group's instructions


def unwrap_block(data: dict) -> dict:
    """Accept either a bare getBlock result or the {"block": ...} dump wrapper."""
    if not isinstance(data, dict):
        raise ValueError(f"Block must be a JSON object, got {type(data).__name__}")
    inner = data.get("block")
    return inner if isinstance(inner, dict) else data


def load_block(path: Path) -> dict:
    """Read a block JSON dump from disk."""
    with open(path, "r", encoding="utf-8") as f:
        return unwrap_block(json.load(f))


def iter_created_accounts(block: dict, program_id: str = SAS_PROGRAM_ID) -> Iterator[CreatedAccount]:
    """Walk transactions -> inner instruction groups -> instructions, depth first.

    Yields every createAccount whose owner is program_id, in block order.
    Missing or null keys at any level are treated as empty.
    """
    block = unwrap_block(block)
    for tx_index, tx in enumerate(block.get("transactions") or []):
        meta = tx.get("meta") or {}
        for group_index, group in enumerate(meta.get("innerInstructions") or []):
            for ix_index, ix in enumerate(group.get("instructions") or []):
                if ix.get("programId") != SYSTEM_PROGRAM_ID:
                    continue
                parsed = ix.get("parsed")
                # Unparsed instructions carry base-58 data strings instead of dicts
                if not isinstance(parsed, dict) or parsed.get("type") != CREATE_ACCOUNT:
                    continue
                info = parsed.get("info") or {}
                owner = info.get("owner")
                new_account = info.get("newAccount")
                if owner == program_id and new_account:
                    try:
                        address = Identifier.from_base58(new_account)
                    except ValueError as e:
                        raise ValueError(f"Invalid newAccount address {new_account!r}: {e}") from e
                    yield CreatedAccount(
                        address=address,
                        owner=owner,
                        tx_index=tx_index,
                        group_index=group_index,
                        ix_index=ix_index,
                    )


def find_created_account(block: dict, program_id: str = SAS_PROGRAM_ID) -> Optional[CreatedAccount]:
    """First matching createAccount in depth-first order, or None."""
    return next(iter_created_accounts(block, program_id), None)
