# Author: PB and Claude
# Date: 2026-10-19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# src/ipfs_filesystem/adapter.py

"""
Filesystem adapter over an IPFS node.

Logical paths map onto the node's mutable filesystem (MFS) through a
PathPrefixer. Writes go through operations.upload(); URL requests go
through GatewayResolver. Every method accepting `config` takes a per-call
override merged over the adapter's defaults (see config.merge_config).
"""

import logging
import mimetypes
import time
from typing import Iterator, Optional

from ipfs_filesystem import operations
from ipfs_filesystem.config import AdapterConfig, merge_config
from ipfs_filesystem.errors import (
    MissingIdentifier,
    TransportFailure,
    UnableToCopy,
    UnableToCreateDirectory,
    UnableToDelete,
    UnableToMove,
    UnableToPublish,
    UnableToReadFile,
    UnableToRetrieveMetadata,
    UnableToSetVisibility,
)
from ipfs_filesystem.gateway import GatewayResolver
from ipfs_filesystem.node_api import Contents, NodeAPIError, NodeClient
from ipfs_filesystem.prefixer import PathPrefixer
from ipfs_filesystem.types import (
    VISIBILITY_PUBLIC,
    DirectoryAttributes,
    EntryType,
    FileAttributes,
    StorageAttributes,
    UploadResult,
)


logger = logging.getLogger(__name__)


def _failure(cls, location: str, error: NodeAPIError):
    """Map a node error on a read path to not-found or transport failure."""
    if error.is_not_found:
        return cls.from_error(location, error)
    return TransportFailure.from_error(location, error)


class IPFSAdapter:
    """Filesystem operations backed by an IPFS node."""

    def __init__(self, client: NodeClient, prefix: str = "", config=None):
        """
        Args:
            client: Node client (IPFSClient or anything implementing NodeClient)
            prefix: Path prefix applied to every logical path
            config: AdapterConfig or mapping of options overriding the defaults
        """
        self.client = client
        self.prefixer = PathPrefixer(prefix)
        self.config = merge_config(AdapterConfig(), config)

    def _location(self, path: str) -> str:
        return self.prefixer.location(path)

    def _options(self, config=None) -> AdapterConfig:
        return merge_config(self.config, config)

    # -- queries ---------------------------------------------------------

    def file_exists(self, path: str) -> bool:
        return operations.probe(self.client, self._location(path)) is not None

    def directory_exists(self, path: str) -> bool:
        stat = operations.probe(self.client, self._location(path))
        return stat is not None and EntryType.from_node(stat.get("Type")) is EntryType.DIR

    # -- writes ----------------------------------------------------------

    def write(self, path: str, contents: Contents, config=None) -> UploadResult:
        """
        Write contents at path.

        Returns:
            UploadResult with the CID (and IPNS name when published)

        Raises:
            UploadFailed: If a node call in the write pipeline fails
        """
        return operations.upload(self.client, self._location(path), contents, self._options(config))

    def write_stream(self, path: str, stream, config=None) -> UploadResult:
        """Write from a binary file object without reading it into memory."""
        return self.write(path, stream, config)

    def create_directory(self, path: str, config=None) -> None:
        location = self._location(path)
        try:
            self.client.files_mkdir(location, parents=True)
        except NodeAPIError as e:
            raise UnableToCreateDirectory.from_error(location, e) from e

    def delete(self, path: str) -> None:
        location = self._location(path)
        try:
            self.client.files_rm(location, recursive=True)
        except NodeAPIError as e:
            raise UnableToDelete.from_error(location, e) from e

    def delete_directory(self, path: str) -> None:
        self.delete(path)

    def move(self, source: str, destination: str, config=None) -> None:
        src = self._location(source)
        dst = self._location(destination)
        try:
            self.client.files_mv(src, dst)
        except NodeAPIError as e:
            raise UnableToMove(src, f"to {dst}: {e}", e) from e

    def copy(self, source: str, destination: str, config=None) -> None:
        """Copy source to destination, replacing it if auto_override is set."""
        options = self._options(config)
        src = self._location(source)
        dst = self._location(destination)
        try:
            if options.auto_override and operations.probe(self.client, dst) is not None:
                self.client.files_rm(dst, recursive=True)
            self.client.files_cp(src, dst)
        except NodeAPIError as e:
            raise UnableToCopy(src, f"to {dst}: {e}", e) from e

    # -- reads -----------------------------------------------------------

    def read(self, path: str) -> bytes:
        location = self._location(path)
        try:
            return self.client.files_read(location)
        except NodeAPIError as e:
            raise _failure(UnableToReadFile, location, e) from e

    def read_stream(self, path: str) -> Iterator[bytes]:
        location = self._location(path)
        try:
            return self.client.files_read(location, stream=True)
        except NodeAPIError as e:
            raise _failure(UnableToReadFile, location, e) from e

    def _stat(self, path: str) -> dict:
        location = self._location(path)
        try:
            return self.client.files_stat(location)
        except NodeAPIError as e:
            raise _failure(UnableToRetrieveMetadata, location, e) from e

    # -- metadata --------------------------------------------------------

    def set_visibility(self, path: str, visibility: str) -> None:
        # Everything on IPFS is public; only existence is checked
        if not self.file_exists(path):
            raise UnableToSetVisibility(self._location(path), "File does not exist")

    def visibility(self, path: str) -> FileAttributes:
        if not self.file_exists(path):
            raise UnableToRetrieveMetadata(self._location(path), "File does not exist")
        return FileAttributes(path, visibility=VISIBILITY_PUBLIC, last_modified=int(time.time()))

    def mime_type(self, path: str) -> FileAttributes:
        location = self._location(path)
        if not self.file_exists(path):
            raise UnableToRetrieveMetadata(location, "File does not exist")

        mime, _ = mimetypes.guess_type(path)
        if mime is None:
            raise UnableToRetrieveMetadata(location, "Unknown mimetype")

        return FileAttributes(path, last_modified=int(time.time()), mime_type=mime)

    def last_modified(self, path: str) -> FileAttributes:
        # MFS keeps no modification time unless asked to; report now
        stat = self._stat(path)
        return FileAttributes(path, file_size=stat.get("Size"), last_modified=int(time.time()))

    def file_size(self, path: str) -> FileAttributes:
        stat = self._stat(path)
        if EntryType.from_node(stat.get("Type")) is EntryType.DIR:
            raise UnableToRetrieveMetadata(self._location(path), "Path is a directory")
        return FileAttributes(path, file_size=stat.get("Size"), last_modified=int(time.time()))

    def checksum(self, path: str) -> str:
        """CID of the entry at path."""
        return self._stat(path)["Hash"]

    # -- listing ---------------------------------------------------------

    def list_contents(self, path: str = "", deep: bool = False) -> Iterator[StorageAttributes]:
        """
        List entries under path.

        A missing directory lists as empty. The directory itself is never
        yielded.
        """
        base = path.strip("/")
        for parent, entry in self._iterate_folder_contents(base, deep):
            attributes = self._normalize(parent, entry)
            if attributes.is_dir() and attributes.path == base:
                continue
            yield attributes

    def _iterate_folder_contents(self, path: str, deep: bool):
        try:
            result = self.client.files_ls(self._location(path), long=True, unsorted=True)
        except NodeAPIError as e:
            logger.debug(f"list_contents: cannot list {path} ({e})")
            return

        entries = result.get("Entries") or []
        for entry in entries:
            yield path, entry

        if deep:
            for entry in entries:
                if EntryType.from_node(entry.get("Type")) is EntryType.DIR:
                    child = "/".join(
                        s for s in (path, self.prefixer.strip_directory_prefix(entry["Name"])) if s
                    )
                    yield from self._iterate_folder_contents(child, deep)

    def _normalize(self, parent: str, entry: dict) -> StorageAttributes:
        if EntryType.from_node(entry.get("Type")) is EntryType.DIR:
            name = self.prefixer.strip_directory_prefix(entry["Name"])
            return DirectoryAttributes(
                path=f"{parent}/{name}".lstrip("/"),
                last_modified=int(time.time()),
                extra_metadata={"hash": entry.get("Hash")},
            )

        name = self.prefixer.strip_prefix(entry["Name"])
        normalized = f"{parent}/{name}".lstrip("/")
        return FileAttributes(
            path=normalized,
            file_size=entry.get("Size"),
            last_modified=int(time.time()),
            mime_type=mimetypes.guess_type(normalized)[0],
            extra_metadata={"hash": entry.get("Hash")},
        )

    # -- urls ------------------------------------------------------------

    def get_url(self, path: str, file: str = None) -> str:
        """Direct ipfs:// reference to path (and file inside it)."""
        url = f"ipfs://ipfs/{self.checksum(path)}"
        if file:
            url = f"{url}/{file.strip('/')}"
        return url

    def _publish(self, location: str, file: Optional[str], cid: str, options: AdapterConfig) -> str:
        try:
            key = operations.resolve_key(self.client, location, file, options.key)
            return operations.publish(self.client, f"/ipfs/{cid}", key, options.publish_options)
        except NodeAPIError as e:
            raise UnableToPublish.from_error(location, e) from e

    def get_gateway_url(self, path: str, file: str = None, config=None) -> str:
        """
        Gateway URL for file inside the directory at path.

        For the ipns service with the path or subdomain style, an IPNS name
        is needed: the configured `ipns` option if set, otherwise one is
        published on demand when auto_publish is on.

        Raises:
            MissingIdentifier: If an IPNS name is needed and auto_publish is off
            MissingDomain: If the dnslink style has no domain
            UnableToRetrieveMetadata: If path does not exist
            UnableToPublish: If the on-demand publish fails
        """
        options = self._options(config)
        gateway = options.gateway
        resolver = GatewayResolver(gateway)
        location = self._location(path)

        ipns = options.ipns
        needs_name = gateway.service == "ipns" and gateway.style != "dnslink" and not ipns
        if needs_name and not options.auto_publish:
            raise MissingIdentifier(
                f'Gateway with service "ipns" and style "{gateway.style}" needs an IPNS '
                "name: set the ipns option or enable auto_publish."
            )
        resolver.check_domain()

        cid = self.checksum(path)
        if needs_name:
            ipns = self._publish(location, file, cid, options)

        return resolver.resolve(path, file, cid, ipns)

    def get_temporary_url(self, path: str, file: str = None, config=None) -> str:
        """
        Publish path to IPNS and return its gateway URL.

        The record expires after publish_options.lifetime, which makes the
        URL temporary. Publishes regardless of auto_publish.
        """
        options = self._options(config)
        resolver = GatewayResolver(options.gateway)
        resolver.check_domain()

        location = self._location(path)
        cid = self.checksum(path)
        ipns = self._publish(location, file, cid, options)
        return resolver.resolve(path, file, cid, ipns)
