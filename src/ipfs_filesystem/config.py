# Author: PB and Claude
# Date: 2026-10-19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# src/ipfs_filesystem/config.py

"""
Adapter Configuration

Typed option tree for the adapter plus the TFC toml loader:
  /etc/tfc/common.toml   -- shared config (org name, ipfs endpoints)
  /etc/tfc/ipfs-fs.toml  -- adapter config ([ipfs], [filesystem], [options])

Deep merge: common.toml is base, ipfs-fs.toml overrides at section level.

Per-call overrides go through merge_config(): option groups (pin_options,
publish_options, gateway) merge key by key, scalars are replaced, and
anything not in the option tree is ignored.
"""

import logging
import re
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, Optional

from ipfs_filesystem.errors import UnsupportedOption, ValidationError


logger = logging.getLogger(__name__)

DEFAULT_COMMON = Path("/etc/tfc/common.toml")
DEFAULT_CONFIG = Path("/etc/tfc/ipfs-fs.toml")

DEFAULT_GATEWAY = "ipfs.io"
SERVICES = ("ipfs", "ipns")
STYLES = ("path", "subdomain", "dnslink")

# Go duration strings as accepted by kubo, e.g. "60s", "1h30m", "1.5h"
_DURATION = re.compile(r"^(\d+(\.\d+)?(ns|us|µs|ms|s|m|h))+$")


def _check_types(options, bools=(), strings=()) -> None:
    """Reject option values of the wrong type (e.g. "false" for a flag)."""
    name = type(options).__name__
    for key in bools:
        value = getattr(options, key)
        if not isinstance(value, bool):
            raise ValidationError(f"{name}.{key} must be true or false, got {value!r}")
    for key in strings:
        value = getattr(options, key)
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"{name}.{key} must be a string, got {value!r}")


@dataclass(frozen=True)
class GatewayConfig:
    """How gateway URLs are built."""
    service: str = "ipfs"                   # "ipfs" or "ipns"
    style: str = "path"                     # "path", "subdomain" or "dnslink"
    url: str = DEFAULT_GATEWAY              # Gateway host
    domain: Optional[str] = None            # DNSLink domain
    prefer_domain: bool = True              # dnslink: use domain as host

    def __post_init__(self):
        _check_types(self, bools=("prefer_domain",), strings=("url", "domain"))
        service = str(self.service).lower()
        style = str(self.style).lower()
        if service not in SERVICES:
            raise UnsupportedOption(f"Gateway does not support service: {self.service}")
        if style not in STYLES:
            raise UnsupportedOption(f"Gateway does not support style: {self.style}")
        object.__setattr__(self, "service", service)
        object.__setattr__(self, "style", style)
        object.__setattr__(self, "url", (self.url or DEFAULT_GATEWAY).strip("/"))
        if self.domain is not None:
            object.__setattr__(self, "domain", self.domain.strip("/"))

    def to_dict(self) -> dict:
        return {
            "service": self.service,
            "style": self.style,
            "url": self.url,
            "domain": self.domain,
            "prefer_domain": self.prefer_domain,
        }


@dataclass(frozen=True)
class PinOptions:
    remote: bool = False
    service: Optional[str] = None           # Remote pinning service name

    def __post_init__(self):
        _check_types(self, bools=("remote",), strings=("service",))

    def to_dict(self) -> dict:
        return {"remote": self.remote, "service": self.service}


@dataclass(frozen=True)
class PublishOptions:
    lifetime: str = "24h"
    offline: bool = False
    allow_offline: bool = False

    def __post_init__(self):
        _check_types(self, bools=("offline", "allow_offline"))
        if not _DURATION.match(str(self.lifetime)):
            raise ValidationError(f"Invalid publish lifetime: {self.lifetime!r}")

    def to_dict(self) -> dict:
        return {
            "lifetime": self.lifetime,
            "offline": self.offline,
            "allow_offline": self.allow_offline,
        }


# Option groups and the dataclass that holds each of them
OPTION_GROUPS = {
    "pin_options": PinOptions,
    "publish_options": PublishOptions,
    "gateway": GatewayConfig,
}


@dataclass(frozen=True)
class AdapterConfig:
    """Adapter option tree. Built once per adapter, overridden per call."""
    auto_pin: bool = True
    pin_options: PinOptions = field(default_factory=PinOptions)
    auto_copy: bool = True
    auto_override: bool = True
    auto_publish: bool = False
    publish_options: PublishOptions = field(default_factory=PublishOptions)
    gateway: GatewayConfig = field(default_factory=GatewayConfig)
    ipns: Optional[str] = None              # Known IPNS name for gateway URLs
    key: Optional[str] = None               # Keystore key to publish with

    def __post_init__(self):
        _check_types(
            self,
            bools=("auto_pin", "auto_copy", "auto_override", "auto_publish"),
            strings=("ipns", "key"),
        )

    @property
    def remote_pin(self) -> bool:
        """True if pinning goes to a remote service instead of this node."""
        return self.auto_pin and self.pin_options.remote and bool(self.pin_options.service)

    def to_dict(self) -> dict:
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            result[f.name] = value.to_dict() if f.name in OPTION_GROUPS else value
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AdapterConfig":
        return merge_config(cls(), data)


def _known_keys(cls) -> set:
    return {f.name for f in fields(cls)}


def merge_config(defaults: AdapterConfig, override=None) -> AdapterConfig:
    """
    Merge a per-call override into the adapter defaults.

    Args:
        defaults: The adapter's AdapterConfig (never modified)
        override: Mapping of options, an AdapterConfig, or None

    Returns:
        New AdapterConfig with the override applied

    Raises:
        ValidationError: If an option group is given something other than a mapping,
            or a merged value fails validation
    """
    if override is None:
        return defaults
    if isinstance(override, AdapterConfig):
        override = override.to_dict()

    merged = {}
    for key in _known_keys(AdapterConfig):
        merged[key] = getattr(defaults, key)

    for key, value in override.items():
        if key not in merged:
            logger.debug(f"merge_config: ignoring unknown option '{key}'")
            continue

        group = OPTION_GROUPS.get(key)
        if group is None:
            merged[key] = value
            continue

        if value is None:
            continue
        if isinstance(value, group):
            value = value.to_dict()
        if not isinstance(value, Mapping):
            raise ValidationError(f"Option group '{key}' expects a mapping, got {type(value).__name__}")

        known = _known_keys(group)
        sub_options = merged[key].to_dict()
        for sub_key, sub_value in value.items():
            if sub_key not in known:
                logger.debug(f"merge_config: ignoring unknown option '{key}.{sub_key}'")
                continue
            sub_options[sub_key] = sub_value
        merged[key] = group(**sub_options)

    return AdapterConfig(**merged)


@dataclass
class NodeConfig:
    """Where the kubo RPC lives."""
    host: str = "127.0.0.1"
    port: int = 5001
    timeout: Optional[float] = None

    def to_dict(self) -> dict:
        return {"host": self.host, "port": self.port, "timeout": self.timeout}

    @classmethod
    def from_dict(cls, data: dict) -> "NodeConfig":
        if isinstance(data, str):
            # Simple format: just a hostname
            return cls(host=data)
        return cls(
            host=data.get("host", "127.0.0.1"),
            port=int(data.get("port", 5001)),
            timeout=data.get("timeout"),
        )


@dataclass
class FSConfig:
    """Complete adapter configuration."""
    node: NodeConfig = field(default_factory=NodeConfig)
    prefix: str = ""
    options: AdapterConfig = field(default_factory=AdapterConfig)

    def validate(self) -> tuple[list[str], list[str]]:
        """
        Validate configuration, return (errors, warnings).
        Empty errors list means config is usable.
        """
        errors = []
        warnings = []

        options = self.options
        gateway = options.gateway

        if gateway.style == "dnslink" and not gateway.domain:
            errors.append("gateway style 'dnslink' requires gateway.domain")

        if options.pin_options.remote and not options.pin_options.service:
            warnings.append("pin_options.remote is set but no service is named; pinning locally")

        if (
            gateway.service == "ipns"
            and gateway.style != "dnslink"
            and not options.ipns
            and not options.auto_publish
        ):
            warnings.append(
                "gateway service 'ipns' without an ipns name needs auto_publish for gateway URLs"
            )

        if options.publish_options.offline and not options.auto_publish:
            warnings.append("publish_options are set but auto_publish is off")

        return errors, warnings


def _deep_merge(base: dict, override: dict) -> dict:
    """Merge override into base at section level.

    For top-level keys that are both dicts (TOML sections), merge their
    contents with override winning on key conflict.
    For non-dict values, override replaces base.
    """
    merged = dict(base)
    for key, val in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(val, dict):
            merged[key] = {**merged[key], **val}
        else:
            merged[key] = val
    return merged


def load_config(
    common_path: Path = None, config_path: Path = None
) -> FSConfig:
    """Load config from common.toml + ipfs-fs.toml. Returns FSConfig.

    Args:
        common_path: Path to common.toml. Default: /etc/tfc/common.toml
        config_path: Path to ipfs-fs.toml. Default: /etc/tfc/ipfs-fs.toml

    Returns:
        FSConfig object

    Raises:
        FileNotFoundError: If the adapter config file doesn't exist
        ValidationError: If an option value is invalid
    """
    common_file = common_path or DEFAULT_COMMON
    config_file = config_path or DEFAULT_CONFIG

    # Load common.toml (optional, may not exist on minimal installs)
    common = {}
    if common_file.exists():
        with open(common_file, "rb") as f:
            common = tomllib.load(f)

    # Load ipfs-fs.toml (required)
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found: {config_file}")

    with open(config_file, "rb") as f:
        specific = tomllib.load(f)

    config = _deep_merge(common, specific)

    return FSConfig(
        node=NodeConfig.from_dict(config.get("ipfs", {})),
        prefix=config.get("filesystem", {}).get("prefix", ""),
        options=AdapterConfig.from_dict(config.get("options", {})),
    )
