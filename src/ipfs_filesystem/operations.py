# Author: PB and Claude
# Date: 2026-10-19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# src/ipfs_filesystem/operations.py

"""
Adapter Operations

The write pipeline and the IPNS helpers shared by writes and gateway URLs.

A write runs these steps in order, each switched by its own option:

    add       always; pinned here when auto_pin is set and pinning is local
    pin       auto_pin + pin_options.remote + pin_options.service: remote pin
    mirror    auto_copy: link the new CID into MFS at the destination
    publish   auto_publish: publish /ipfs/<cid> to IPNS

A failing step raises UploadFailed. Steps already done stay done.
"""

import logging
import posixpath
import re
from typing import Optional

from ipfs_filesystem.config import AdapterConfig, PublishOptions
from ipfs_filesystem.errors import UploadFailed, ValidationError
from ipfs_filesystem.node_api import Contents, NodeAPIError, NodeClient
from ipfs_filesystem.types import EntryType, UploadResult, now


logger = logging.getLogger(__name__)

_KEY_CHARS = re.compile(r"[^A-Za-z0-9-]")


def probe(client: NodeClient, location: str) -> Optional[dict]:
    """Stat a location, returning None if the node cannot stat it."""
    try:
        return client.files_stat(location)
    except NodeAPIError as e:
        logger.debug(f"probe: {location} not found ({e})")
        return None


def derive_key_name(path: str, file: str = None) -> str:
    """Keystore-safe key name for a path and file."""
    return _KEY_CHARS.sub("", f"{path or ''}{file or ''}").lower()


def resolve_key(
    client: NodeClient,
    path: str,
    file: str = None,
    explicit_key: str = None,
) -> str:
    """
    Pick the keystore key to publish a resource under.

    An explicit key is used as given; the caller asserts it exists in the
    node's keystore. Otherwise the key name is derived from path + file and
    generated on first use, so the same resource always maps to the same
    IPNS name.

    Args:
        client: Node client
        path: Prefixed path of the resource
        file: File name, appended to path
        explicit_key: Key name from the per-call config

    Returns:
        Key name

    Raises:
        ValidationError: If no key name can be derived
        NodeAPIError: If listing or generating keys fails
    """
    if explicit_key:
        return explicit_key

    name = derive_key_name(path, file)
    if not name:
        raise ValidationError(f"Cannot derive an IPNS key name from path {path!r} and file {file!r}")

    existing = {k.get("Name") for k in client.key_list()}
    if name not in existing:
        logger.info(f"resolve_key: generating key '{name}'")
        client.key_gen(name)

    return name


def publish(
    client: NodeClient,
    ipfs_path: str,
    key: str,
    options: PublishOptions = None,
) -> str:
    """
    Publish an /ipfs/ path to IPNS.

    Returns:
        The IPNS name the record was published under

    Raises:
        NodeAPIError: If the node rejects the publish
    """
    options = options or PublishOptions()
    logger.debug(f"publish: {ipfs_path} key={key} lifetime={options.lifetime}")
    result = client.name_publish(
        ipfs_path,
        key=key,
        lifetime=options.lifetime,
        offline=options.offline,
        allow_offline=options.allow_offline,
    )
    return result["Name"]


def mirror(client: NodeClient, cid: str, location: str, override: bool = True) -> bool:
    """
    Link a CID into MFS at location.

    An existing entry is removed first when override is set. When override
    is not set, an existing entry is left alone and the mirror is skipped.

    Returns:
        True if the CID was linked, False if the mirror was skipped
    """
    if probe(client, location) is not None:
        if not override:
            logger.info(f"mirror: {location} exists and auto_override is off, skipping")
            return False
        client.files_rm(location, recursive=True)

    parent = posixpath.dirname(location)
    if parent and parent != "/":
        client.files_mkdir(parent, parents=True)

    client.files_cp(f"/ipfs/{cid}", location)
    return True


def upload(
    client: NodeClient,
    location: str,
    contents: Contents,
    config: AdapterConfig = None,
) -> UploadResult:
    """
    Write contents to the node.

    Args:
        client: Node client
        location: Absolute MFS destination (already prefixed)
        contents: bytes, str or a binary file object
        config: Effective options for this call

    Returns:
        UploadResult for the added content

    Raises:
        UploadFailed: If any node call fails
        ValidationError: If a publish key cannot be derived
    """
    config = config or AdapterConfig()
    directory, file = posixpath.split(location)

    try:
        added = client.add(file or location, contents, pin=config.auto_pin and not config.remote_pin)
        cid = added["Hash"]
        logger.debug(f"upload: added {location} as {cid}")

        if config.remote_pin:
            logger.debug(f"upload: pinning {cid} on '{config.pin_options.service}'")
            client.pin_remote_add(config.pin_options.service, cid, name=file or None)

        if config.auto_copy:
            mirror(client, cid, location, override=config.auto_override)

        ipns_name = None
        if config.auto_publish:
            key = resolve_key(client, directory, file, config.key)
            ipns_name = publish(client, f"/ipfs/{cid}", key, config.publish_options)
            logger.info(f"upload: published {cid} as /ipns/{ipns_name}")

    except NodeAPIError as e:
        raise UploadFailed.from_error(location, e) from e

    size = added.get("Size")
    return UploadResult(
        path=location,
        content_hash=cid,
        entry_type=EntryType.FILE,
        timestamp=now(),
        size=int(size) if size is not None else None,
        ipns_name=ipns_name,
    )
