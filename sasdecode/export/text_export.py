"""Human-readable rendering of decoded records."""
from __future__ import annotations

from sasdecode.export.json_export import record_to_dict
from sasdecode.account.records import Record


def format_record(record: Record) -> str:
    """Aligned "field: value" lines, one signer per line for credentials."""
    entry = record_to_dict(record)
    kind = entry.pop("type")
    width = max(len(k) for k in entry)

    lines = [f"{kind}"]
    for key, value in entry.items():
        if isinstance(value, list):
            lines.append(f"  {key:<{width}}  ({len(value)})")
            for i, item in enumerate(value):
                lines.append(f"  {'':<{width}}  [{i}] {item}")
            continue
        if value is None:
            value = "-"
        elif isinstance(value, str) and value == "":
            value = '""'
        lines.append(f"  {key:<{width}}  {value}")
    return "\n".join(lines)
