"""Click CLI for decoding Solana Attestation Service accounts."""
from __future__ import annotations

import base64
import binascii
from pathlib import Path
from typing import BinaryIO, Optional

import click
import httpx

from sasdecode.config import DEFAULT_RPC_URL, DEVNET_RPC_URL
from sasdecode.profiles import (
    Config,
    Endpoint,
    Profile,
    load_config,
    resolve_endpoint,
    save_config,
    validate_profile_name,
)
from sasdecode.account.records import DecodeError, Identifier, Record, UnknownTag


class Context:
    """Holds the resolved RPC endpoint derived from --rpc-url / --profile / config."""

    def __init__(self, rpc_url: str | None = None, profile: str | None = None, quiet: bool = False):
        self._explicit_url = rpc_url
        self._profile_name = profile
        self._endpoint: Endpoint | None = None
        self.quiet = quiet

    @property
    def endpoint(self) -> Endpoint:
        if self._endpoint is None:
            self._endpoint = resolve_endpoint(self._explicit_url, self._profile_name)
        return self._endpoint

    def client(self):
        from sasdecode.rpc.client import SolanaRpcClient
        return SolanaRpcClient(self.endpoint.rpc_url)

    def progress(self, message: str):
        if not self.quiet:
            click.echo(message, err=True)


pass_ctx = click.make_pass_decorator(Context)

format_option = click.option(
    "--format", "fmt", type=click.Choice(["text", "json"]), default="text",
    help="Output format",
)
strict_option = click.option(
    "--strict-utf8", is_flag=True,
    help="Fail on invalid UTF-8 in string fields instead of substituting U+FFFD",
)


def _decode_or_fail(data: bytes, strict_utf8: bool) -> Record:
    from sasdecode.account.decoders import decode_account

    try:
        return decode_account(data, strict_utf8=strict_utf8)
    except UnknownTag as e:
        raise click.ClickException(f"Not a recognized SAS account ({e})")
    except DecodeError as e:
        raise click.ClickException(f"Malformed account data: {e}")


def _emit(records: list[Record], fmt: str, as_list: bool = False):
    """Print records. JSON is a single object unless as_list or several records."""
    from sasdecode.export.json_export import export_json
    from sasdecode.export.text_export import format_record

    if fmt == "json":
        click.echo(export_json(records[0] if len(records) == 1 and not as_list else records))
        return
    click.echo("\n\n".join(format_record(r) for r in records))


def _fetch_account(ctx: Context, client, address: Identifier) -> bytes:
    from sasdecode.rpc.client import RpcError

    ctx.progress(f"Fetching account {address}")
    try:
        data = client.get_account_info(address)
    except (RpcError, httpx.HTTPError, ValueError) as e:
        raise click.ClickException(f"Failed to fetch account {address}: {e}")
    if data is None:
        raise click.ClickException(f"Account not found on-chain: {address}")
    return data


@click.group()
@click.option("--rpc-url", default=None, help="Solana JSON-RPC endpoint (overrides profiles)")
@click.option("--profile", "-p", default=None, type=str,
              help="Named profile to use (from sasdecode init)")
@click.option("--quiet", "-q", is_flag=True, help="Suppress progress messages")
@click.version_option(package_name="sasdecode")
@click.pass_context
def cli(ctx, rpc_url: Optional[str], profile: Optional[str], quiet: bool):
    """sasdecode - Solana Attestation Service account decoder.

    Find the SAS account created in a block, fetch its data, and decode it
    as a Credential, Schema or Attestation.
    """
    ctx.obj = Context(rpc_url=rpc_url, profile=profile, quiet=quiet)


@cli.command()
def init():
    """Set up config profiles for RPC endpoints (interactive)."""
    config = load_config()

    if config.profiles:
        click.echo("Current profiles:")
        for name, p in config.profiles.items():
            default_marker = " (default)" if name == config.default_profile else ""
            click.echo(f"  {name}: {p.rpc_url}{default_marker}")
        click.echo()
        if not click.confirm("Overwrite existing configuration?", default=False):
            click.echo("Aborted.")
            return
        config = Config()

    click.echo("Set up sasdecode profiles. Each profile stores a Solana RPC endpoint.\n")

    while True:
        default_name = "mainnet" if not config.profiles else None
        name = click.prompt("Profile name", default=default_name).strip()
        if not validate_profile_name(name):
            click.echo(f"Invalid profile name '{name}'. Use letters, digits, hyphens, underscores.")
            continue

        default_url = DEVNET_RPC_URL if name == "devnet" else DEFAULT_RPC_URL
        rpc_url = click.prompt("RPC URL", default=default_url).strip()
        program_id = click.prompt("SAS program id (blank for default)", default="",
                                  show_default=False).strip()
        if program_id:
            try:
                Identifier.from_base58(program_id)
            except ValueError:
                click.echo(f"Invalid program id '{program_id}'.")
                continue

        config.profiles[name] = Profile(name=name, rpc_url=rpc_url, program_id=program_id or None)

        if len(config.profiles) == 1:
            config.default_profile = name
        elif click.confirm(f"Set '{name}' as the default profile?", default=False):
            config.default_profile = name

        if not click.confirm("\nAdd another profile?", default=False):
            break
        click.echo()

    saved_path = save_config(config)
    click.echo(f"\nConfig saved to {saved_path}")


@cli.command()
@click.argument("file", type=click.File("rb"), required=False)
@click.option("--hex", "hex_data", default=None, help="Account data as a hex string")
@click.option("--base64", "b64_data", default=None, help="Account data as base64")
@format_option
@strict_option
def decode(file: Optional[BinaryIO], hex_data: Optional[str], b64_data: Optional[str],
           fmt: str, strict_utf8: bool):
    """Decode raw account data from FILE ('-' for stdin), --hex or --base64."""
    sources = [s for s in (file, hex_data, b64_data) if s is not None]
    if len(sources) != 1:
        raise click.UsageError("Provide exactly one of FILE, --hex or --base64.")

    try:
        if file is not None:
            data = file.read()
        elif hex_data is not None:
            data = bytes.fromhex(hex_data.strip().removeprefix("0x"))
        else:
            data = base64.b64decode(b64_data.strip(), validate=True)
    except (ValueError, binascii.Error) as e:
        raise click.UsageError(f"Could not parse input: {e}")

    _emit([_decode_or_fail(data, strict_utf8)], fmt)


@cli.command()
@click.argument("address")
@format_option
@strict_option
@pass_ctx
def account(ctx: Context, address: str, fmt: str, strict_utf8: bool):
    """Fetch an account by base-58 ADDRESS and decode it."""
    try:
        ident = Identifier.from_base58(address)
    except ValueError:
        raise click.UsageError(f"Invalid account address: {address}")

    with ctx.client() as client:
        data = _fetch_account(ctx, client, ident)
    _emit([_decode_or_fail(data, strict_utf8)], fmt)


@cli.command()
@click.option("--file", "block_file", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              default=None, help="Block JSON dump (getBlock result, optionally under a 'block' key)")
@click.option("--slot", type=int, default=None, help="Fetch the block at this slot via RPC")
@click.option("--program-id", default=None, help="Owner program to match (default: SAS program)")
@click.option("--all", "all_matches", is_flag=True,
              help="Decode every matching account instead of only the first")
@format_option
@strict_option
@pass_ctx
def block(ctx: Context, block_file: Optional[Path], slot: Optional[int], program_id: Optional[str],
          all_matches: bool, fmt: str, strict_utf8: bool):
    """Find SAS accounts created in a block and decode them."""
    from sasdecode.account.decoders import try_decode_account
    from sasdecode.block.scanner import find_created_account, iter_created_accounts, load_block
    from sasdecode.rpc.client import RpcError

    if (block_file is None) == (slot is None):
        raise click.UsageError("Provide exactly one of --file or --slot.")

    owner = program_id or ctx.endpoint.program_id

    with ctx.client() as client:
        if block_file is not None:
            try:
                block_data = load_block(block_file)
            except ValueError as e:
                raise click.ClickException(f"Could not read block dump {block_file}: {e}")
        else:
            ctx.progress(f"Fetching block {slot}")
            try:
                block_data = client.get_block(slot)
            except (RpcError, httpx.HTTPError) as e:
                raise click.ClickException(f"Failed to fetch block {slot}: {e}")

        try:
            if all_matches:
                matches = list(iter_created_accounts(block_data, owner))
            else:
                first = find_created_account(block_data, owner)
                matches = [first] if first is not None else []
        except ValueError as e:
            raise click.ClickException(f"Malformed block: {e}")

        if not matches:
            raise click.ClickException("No matching newAccount found in block.")

        records: list[Record] = []
        for match in matches:
            ctx.progress("Matching createAccount instruction found:")
            ctx.progress(f"  owner:      {match.owner}")
            ctx.progress(f"  newAccount: {match.address}")
            if not all_matches:
                data = _fetch_account(ctx, client, match.address)
                records.append(_decode_or_fail(data, strict_utf8))
                continue
            try:
                data = _fetch_account(ctx, client, match.address)
            except click.ClickException as e:
                click.echo(f"Skipping {match.address}: {e.message}", err=True)
                continue
            try:
                record = try_decode_account(data, strict_utf8=strict_utf8)
            except DecodeError as e:
                click.echo(f"Skipping {match.address}: malformed account data: {e}", err=True)
                continue
            if record is None:
                click.echo(f"Skipping {match.address}: not a recognized SAS account", err=True)
                continue
            records.append(record)

    if not records:
        raise click.ClickException("No matching SAS account type found.")
    _emit(records, fmt, as_list=all_matches)
