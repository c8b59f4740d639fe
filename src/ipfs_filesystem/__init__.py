# Author: PB and Claude
# Date: 2026-10-19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# src/ipfs_filesystem/__init__.py

"""
IPFS Filesystem Library

A Python library exposing an IPFS node as a hierarchical filesystem, with
gateway URLs for stored content.

Basic usage:
    from ipfs_filesystem import IPFSAdapter, IPFSClient

    adapter = IPFSAdapter(IPFSClient("127.0.0.1"))
    adapter.write("/docs/readme.txt", b"hello")
    print(adapter.get_gateway_url("/docs", "readme.txt"))

For more control:
    from ipfs_filesystem.config import AdapterConfig, GatewayConfig, load_config
    from ipfs_filesystem.gateway import GatewayResolver
    from ipfs_filesystem.operations import upload, resolve_key, publish
"""

# Config
from ipfs_filesystem.config import (
    AdapterConfig,
    FSConfig,
    GatewayConfig,
    NodeConfig,
    PinOptions,
    PublishOptions,
    load_config,
    merge_config,
)

# Types
from ipfs_filesystem.types import (
    DirectoryAttributes,
    EntryType,
    FileAttributes,
    UploadResult,
)

# Errors
from ipfs_filesystem.errors import (
    FilesystemOperationFailed,
    IPFSFilesystemError,
    MissingDomain,
    MissingIdentifier,
    NotFound,
    TransportFailure,
    UnsupportedOption,
    UploadFailed,
    ValidationError,
)

# Node client
from ipfs_filesystem.node_api import IPFSClient, NodeAPIError, NodeClient

# Components
from ipfs_filesystem.gateway import GatewayResolver
from ipfs_filesystem.operations import publish, resolve_key, upload
from ipfs_filesystem.adapter import IPFSAdapter

# CLI
from ipfs_filesystem.cli import cli

__all__ = [
    # Config
    "AdapterConfig",
    "FSConfig",
    "GatewayConfig",
    "NodeConfig",
    "PinOptions",
    "PublishOptions",
    "load_config",
    "merge_config",
    # Types
    "DirectoryAttributes",
    "EntryType",
    "FileAttributes",
    "UploadResult",
    # Errors
    "FilesystemOperationFailed",
    "IPFSFilesystemError",
    "MissingDomain",
    "MissingIdentifier",
    "NotFound",
    "TransportFailure",
    "UnsupportedOption",
    "UploadFailed",
    "ValidationError",
    # Node client
    "IPFSClient",
    "NodeAPIError",
    "NodeClient",
    # Components
    "GatewayResolver",
    "IPFSAdapter",
    "publish",
    "resolve_key",
    "upload",
    # CLI
    "cli",
]
