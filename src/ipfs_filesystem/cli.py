# Author: PB and Claude
# Date: 2026-10-19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# src/ipfs_filesystem/cli.py

"""
ipfs-fs Command Line Interface

Thin wrapper around IPFSAdapter.
"""

from pathlib import Path
import json
import re
import sys

import click
import requests

from ipfs_filesystem import config as config_module
from ipfs_filesystem.adapter import IPFSAdapter
from ipfs_filesystem.errors import IPFSFilesystemError
from ipfs_filesystem.node_api import IPFSClient, NodeAPIError


def _transport_cause(error: Exception):
    """The requests exception underneath a node or adapter error, if any."""
    while error is not None:
        if isinstance(error, requests.exceptions.RequestException):
            return error
        error = error.__cause__
    return None


def _connection_failed(error: requests.exceptions.ConnectionError) -> None:
    msg = str(error)
    click.echo("Error: Could not connect to IPFS node", err=True)
    if "host=" in msg:
        match = re.search(r"host='([^']+)'", msg)
        if match:
            click.echo(f"  Host: {match.group(1)}", err=True)
    click.echo("  Check --host value or [ipfs] in config", err=True)
    sys.exit(1)


def handle_api_error(func):
    """Decorator to catch API and connection errors."""
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (NodeAPIError, IPFSFilesystemError) as e:
            cause = _transport_cause(e)
            if isinstance(cause, requests.exceptions.ConnectionError):
                _connection_failed(cause)
            if cause is not None:
                click.echo(f"Error: Network error: {cause}", err=True)
            elif isinstance(e, NodeAPIError):
                click.echo(f"Error: IPFS API error: {e}", err=True)
            else:
                click.echo(f"Error: {e}", err=True)
            sys.exit(1)
        except requests.exceptions.ConnectionError as e:
            _connection_failed(e)
        except requests.exceptions.RequestException as e:
            click.echo(f"Error: Network error: {e}", err=True)
            sys.exit(1)
    wrapper.__name__ = func.__name__
    wrapper.__doc__ = func.__doc__
    return wrapper


def _load(config_file: Path, common_file: Path) -> config_module.FSConfig:
    """Load config; without files fall back to defaults (local node, no prefix)."""
    if config_file is None and not config_module.DEFAULT_CONFIG.exists():
        return config_module.FSConfig()
    return config_module.load_config(common_path=common_file, config_path=config_file)


def _adapter(ctx: click.Context) -> IPFSAdapter:
    cfg = _load(ctx.obj["config_file"], ctx.obj["common_file"])
    node = cfg.node
    host = ctx.obj["host"] or node.host
    port = ctx.obj["port"] or node.port
    client = IPFSClient(host=host, port=port, timeout=node.timeout)
    return IPFSAdapter(client, prefix=cfg.prefix, config=cfg.options)


@click.group()
@click.option(
    "--config-file",
    type=click.Path(exists=True, path_type=Path),
    help="Config file path (default: /etc/tfc/ipfs-fs.toml)",
)
@click.option(
    "--common-file",
    type=click.Path(exists=True, path_type=Path),
    help="Shared config path (default: /etc/tfc/common.toml)",
)
@click.option("--host", help="Override IPFS RPC host (default: from config)")
@click.option("--port", type=int, help="Override IPFS RPC port (default: from config)")
@click.pass_context
def cli(ctx, config_file: Path, common_file: Path, host: str, port: int):
    """IPFS filesystem CLI."""
    ctx.ensure_object(dict)
    ctx.obj.update(
        config_file=config_file,
        common_file=common_file,
        host=host,
        port=port,
    )


@cli.command()
@click.argument("path", required=True)
@click.argument("source", type=click.File("rb"), default="-")
@click.option("--pin/--no-pin", default=None, help="Pin the added content")
@click.option("--remote-pin", metavar="SERVICE", help="Pin on this remote pinning service")
@click.option("--copy/--no-copy", default=None, help="Link the content into MFS at PATH")
@click.option("--override/--no-override", default=None, help="Replace an existing entry at PATH")
@click.option("--publish/--no-publish", default=None, help="Publish the content to IPNS")
@click.option("--key", help="Keystore key to publish with (default: derived from PATH)")
@click.option("--lifetime", help="IPNS record lifetime, e.g. 24h")
@click.option(
    "--output-json",
    type=click.Path(path_type=Path),
    help="Write full result as JSON to this file",
)
@click.pass_context
@handle_api_error
def write(ctx, path, source, pin, remote_pin, copy, override, publish, key, lifetime, output_json):
    """
    Write SOURCE (default: stdin) to PATH.

    Examples:

        ipfs-fs write /docs/readme.txt README.txt

        ipfs-fs write /docs/readme.txt README.txt --publish --lifetime 1h
    """
    override_options = {
        "auto_pin": pin,
        "auto_copy": copy,
        "auto_override": override,
        "auto_publish": publish,
        "key": key,
    }
    override_options = {k: v for k, v in override_options.items() if v is not None}
    if remote_pin:
        override_options["auto_pin"] = True
        override_options["pin_options"] = {"remote": True, "service": remote_pin}
    if lifetime:
        override_options["publish_options"] = {"lifetime": lifetime}

    result = _adapter(ctx).write(path, source.read(), override_options)

    click.echo(f"wrote {result.path}")
    click.echo(f"CID: {result.content_hash}")
    if result.ipns_name:
        click.echo(f"IPNS: /ipns/{result.ipns_name}")

    if output_json:
        with open(output_json, "w") as f:
            f.write(result.to_json())
        click.echo(f"result written to: {output_json}")


@cli.command()
@click.argument("path", required=True)
@click.option("--output", type=click.File("wb"), default="-")
@click.pass_context
@handle_api_error
def read(ctx, path, output):
    """
    Read the file at PATH.
    """
    for chunk in _adapter(ctx).read_stream(path):
        output.write(chunk)


@cli.command()
@click.argument("path", default="")
@click.option("--deep", is_flag=True, help="List recursively")
@click.pass_context
@handle_api_error
def ls(ctx, path, deep):
    """
    List entries under PATH.
    """
    output = [a.to_dict() for a in _adapter(ctx).list_contents(path, deep=deep)]
    click.echo(json.dumps(output, indent=2))


@cli.command()
@click.argument("path", required=True)
@click.pass_context
@handle_api_error
def stat(ctx, path):
    """
    Show size, type and CID of PATH.
    """
    adapter = _adapter(ctx)
    if not adapter.file_exists(path):
        click.echo(f"Error: {path} does not exist", err=True)
        sys.exit(1)
    output = {
        "path": path,
        "cid": adapter.checksum(path),
        "type": "dir" if adapter.directory_exists(path) else "file",
    }
    if output["type"] == "file":
        output["size"] = adapter.file_size(path).file_size
    click.echo(json.dumps(output, indent=2))


@cli.command()
@click.argument("path", required=True)
@click.pass_context
@handle_api_error
def rm(ctx, path):
    """
    Remove PATH (recursively).
    """
    _adapter(ctx).delete(path)


@cli.command()
@click.argument("path", required=True)
@click.pass_context
@handle_api_error
def mkdir(ctx, path):
    """
    Create directory PATH and its parents.
    """
    _adapter(ctx).create_directory(path)


@cli.command()
@click.argument("source", required=True)
@click.argument("destination", required=True)
@click.pass_context
@handle_api_error
def mv(ctx, source, destination):
    """
    Move SOURCE to DESTINATION.
    """
    _adapter(ctx).move(source, destination)


@cli.command()
@click.argument("source", required=True)
@click.argument("destination", required=True)
@click.option("--override/--no-override", default=None, help="Replace an existing DESTINATION")
@click.pass_context
@handle_api_error
def cp(ctx, source, destination, override):
    """
    Copy SOURCE to DESTINATION.
    """
    options = {} if override is None else {"auto_override": override}
    _adapter(ctx).copy(source, destination, options)


@cli.command()
@click.argument("path", required=True)
@click.argument("file", required=False)
@click.pass_context
@handle_api_error
def url(ctx, path, file):
    """
    Print the ipfs:// URL of PATH (and FILE inside it).
    """
    click.echo(_adapter(ctx).get_url(path, file))


def _gateway_options(service, style, gateway_url, domain, prefer_domain, ipns, key, lifetime, publish):
    gateway = {
        "service": service,
        "style": style,
        "url": gateway_url,
        "domain": domain,
        "prefer_domain": prefer_domain,
    }
    options = {
        "gateway": {k: v for k, v in gateway.items() if v is not None},
        "ipns": ipns,
        "key": key,
        "auto_publish": publish,
    }
    options = {k: v for k, v in options.items() if v is not None}
    if lifetime:
        options["publish_options"] = {"lifetime": lifetime}
    return options


def gateway_options(func):
    """Shared gateway flags."""
    options = [
        click.option("--service", type=click.Choice(["ipfs", "ipns"]), help="Gateway service"),
        click.option(
            "--style",
            type=click.Choice(["path", "subdomain", "dnslink"]),
            help="Gateway addressing style",
        ),
        click.option("--gateway-url", help="Gateway host (default: ipfs.io)"),
        click.option("--domain", help="DNSLink domain"),
        click.option("--prefer-domain/--no-prefer-domain", default=None),
        click.option("--key", help="Keystore key to publish with"),
        click.option("--lifetime", help="IPNS record lifetime, e.g. 60s"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@cli.command("gateway-url")
@click.argument("path", required=True)
@click.argument("file", required=False)
@gateway_options
@click.option("--ipns", help="Known IPNS name to build the URL with")
@click.option("--publish/--no-publish", default=None, help="Publish on demand for ipns URLs")
@click.pass_context
@handle_api_error
def gateway_url(ctx, path, file, service, style, gateway_url, domain, prefer_domain,
                key, lifetime, ipns, publish):
    """
    Print the gateway URL of FILE inside PATH.

    Examples:

        ipfs-fs gateway-url /some/deep/nested path.txt

        ipfs-fs gateway-url /site index.html --style dnslink --domain example.org
    """
    options = _gateway_options(
        service, style, gateway_url, domain, prefer_domain, ipns, key, lifetime, publish
    )
    click.echo(_adapter(ctx).get_gateway_url(path, file, options))


@cli.command("temporary-url")
@click.argument("path", required=True)
@click.argument("file", required=False)
@gateway_options
@click.pass_context
@handle_api_error
def temporary_url(ctx, path, file, service, style, gateway_url, domain, prefer_domain,
                  key, lifetime):
    """
    Publish PATH to IPNS and print its gateway URL.
    """
    options = _gateway_options(
        service, style, gateway_url, domain, prefer_domain, None, key, lifetime, None
    )
    click.echo(_adapter(ctx).get_temporary_url(path, file, options))


@cli.command()
@click.option(
    "--validate-only",
    is_flag=True,
    help="Only validate config, don't display it",
)
@click.option(
    "--output-json",
    type=click.Path(path_type=Path),
    help="Write config as JSON to this file",
)
@click.pass_context
def config(ctx, validate_only: bool, output_json: Path) -> None:
    """
    Display and validate adapter configuration.

    Examples:

        ipfs-fs config                    # Display config with validation

        ipfs-fs config --validate-only    # Just check for errors

        ipfs-fs config --output-json config.json   # Export as JSON
    """
    config_file = ctx.obj["config_file"]
    config_path = config_file or config_module.DEFAULT_CONFIG

    try:
        cfg = config_module.load_config(
            common_path=ctx.obj["common_file"], config_path=config_file
        )
    except FileNotFoundError:
        click.echo(f"Error: Config file not found: {config_path}", err=True)
        click.echo(f"Create config at {config_path} or use --config-file", err=True)
        sys.exit(1)
    except IPFSFilesystemError as e:
        click.echo(f"Error: Invalid config: {e}", err=True)
        sys.exit(1)

    errors, warnings = cfg.validate()

    if not validate_only:
        options = cfg.options
        click.echo(f"Config file: {config_path}")
        click.echo()
        click.echo("Node:")
        click.echo(f"  host: {cfg.node.host}")
        click.echo(f"  port: {cfg.node.port}")
        click.echo(f"  prefix: {cfg.prefix or '(none)'}")
        click.echo()
        click.echo("Options:")
        click.echo(f"  auto_pin: {options.auto_pin}")
        if options.remote_pin:
            click.echo(f"  remote pin service: {options.pin_options.service}")
        click.echo(f"  auto_copy: {options.auto_copy}")
        click.echo(f"  auto_override: {options.auto_override}")
        click.echo(f"  auto_publish: {options.auto_publish}")
        click.echo(f"  publish lifetime: {options.publish_options.lifetime}")
        click.echo()
        gateway = options.gateway
        click.echo("Gateway:")
        click.echo(f"  service: {gateway.service}")
        click.echo(f"  style: {gateway.style}")
        click.echo(f"  url: {gateway.url}")
        click.echo(f"  domain: {gateway.domain or '(not set)'}")
        click.echo()

    # Validation results
    if errors:
        click.echo("Errors:", err=True)
        for e in errors:
            click.echo(f"  ✗ {e}", err=True)
    if warnings:
        click.echo("Warnings:")
        for w in warnings:
            click.echo(f"  ⚠ {w}")
    if not errors and not warnings:
        click.echo("✓ Config is valid")

    if output_json:
        output_data = {
            "config_path": str(config_path),
            "node": cfg.node.to_dict(),
            "prefix": cfg.prefix,
            "options": cfg.options.to_dict(),
            "errors": errors,
            "warnings": warnings,
            "valid": len(errors) == 0,
        }
        with open(output_json, "w") as f:
            json.dump(output_data, f, indent=2)
        click.echo(f"Config written to: {output_json}")

    sys.exit(1 if errors else 0)
