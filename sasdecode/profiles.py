"""Config profiles for storing named RPC endpoints."""
from __future__ import annotations

import re
import sys
from dataclasses import dataclass, field
from pathlib import Path

import click

from sasdecode.config import APP_NAME, DEFAULT_PROGRAM_ID, DEFAULT_RPC_URL

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

_PROFILE_NAME_RE = re.compile(r"^[a-zA-Z0-9_-]+$")


@dataclass
class Profile:
    name: str
    rpc_url: str
    program_id: str | None = None


@dataclass
class Config:
    default_profile: str | None = None
    profiles: dict[str, Profile] = field(default_factory=dict)


@dataclass
class Endpoint:
    """Resolved RPC URL and SAS program id for a command run."""
    rpc_url: str
    program_id: str = DEFAULT_PROGRAM_ID


def get_config_path() -> Path:
    """Return the TOML config file path via click.get_app_dir."""
    return Path(click.get_app_dir(APP_NAME)) / "config.toml"


def load_config() -> Config:
    """Read TOML config. Returns empty Config if file missing."""
    path = get_config_path()
    if not path.exists():
        return Config()

    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = Config(default_profile=data.get("default_profile"))
    for name, info in data.get("profiles", {}).items():
        config.profiles[name] = Profile(
            name=name,
            rpc_url=info["rpc_url"],
            program_id=info.get("program_id"),
        )
    return config


def save_config(config: Config) -> Path:
    """Write config to TOML using literal strings for values."""
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    lines: list[str] = []
    if config.default_profile:
        lines.append(f"default_profile = \"{config.default_profile}\"")
    lines.append("")

    for name, profile in config.profiles.items():
        lines.append(f"[profiles.{name}]")
        lines.append(f"rpc_url = '{profile.rpc_url}'")
        if profile.program_id:
            lines.append(f"program_id = '{profile.program_id}'")
        lines.append("")

    path.write_text("\n".join(lines), encoding="utf-8")
    return path


def validate_profile_name(name: str) -> bool:
    """Check that a profile name is a valid TOML bare key."""
    return bool(_PROFILE_NAME_RE.match(name))


def resolve_endpoint(rpc_url: str | None, profile_name: str | None) -> Endpoint:
    """Resolve the RPC endpoint: --rpc-url > --profile > default profile > mainnet.

    An explicit --profile that doesn't exist raises click.UsageError.
    """
    if rpc_url is not None:
        return Endpoint(rpc_url=rpc_url)

    config = load_config()

    name = profile_name or config.default_profile
    if name is None:
        return Endpoint(rpc_url=DEFAULT_RPC_URL)

    profile = config.profiles.get(name)
    if profile is None:
        available = ", ".join(config.profiles) or "(none)"
        raise click.UsageError(
            f"Profile '{name}' not found. Available profiles: {available}"
        )

    return Endpoint(
        rpc_url=profile.rpc_url,
        program_id=profile.program_id or DEFAULT_PROGRAM_ID,
    )
