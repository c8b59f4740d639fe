# Author: PB and Claude
# Date: 2026-10-19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# src/ipfs_filesystem/node_api.py

"""
HTTP client for the IPFS (kubo) RPC API.

The adapter only depends on the NodeClient protocol below; IPFSClient is
the concrete implementation talking to a kubo daemon over /api/v0.

API Reference: https://docs.ipfs.tech/reference/kubo/rpc/

Debug logging:
    Enable with: IPFS_FS_DEBUG=1 or by setting log level to DEBUG
    Example: IPFS_FS_DEBUG=1 ipfs-fs write /docs/readme.txt README.txt
"""

import json
import logging
import os
from typing import BinaryIO, Iterator, Optional, Protocol, Union

import requests
from requests_toolbelt import MultipartEncoder

# Configure logger for this module
logger = logging.getLogger(__name__)

# Enable debug logging via environment variable
if os.environ.get("IPFS_FS_DEBUG"):
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )
    logger.setLevel(logging.DEBUG)

Contents = Union[bytes, str, BinaryIO]

# kubo reports missing MFS paths with one of these messages
NOT_FOUND_MARKERS = ("does not exist", "not found", "no link named")

# Endpoints answering with raw file content rather than JSON
BINARY_ENDPOINTS = ("/files/read",)


class NodeAPIError(Exception):
    """Raised when the node RPC returns an error."""

    def __init__(self, message: str, status_code: int = None, response: dict = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response

    @property
    def is_not_found(self) -> bool:
        """True if the node reported a missing path."""
        message = str(self).lower()
        return any(marker in message for marker in NOT_FOUND_MARKERS)


class NodeClient(Protocol):
    """Capability set consumed by the adapter."""

    def add(self, name: str, contents: Contents, pin: bool = False) -> dict: ...

    def files_stat(self, path: str) -> dict: ...

    def files_read(self, path: str, stream: bool = False) -> Union[bytes, Iterator[bytes]]: ...

    def files_ls(self, path: str, long: bool = True, unsorted: bool = True) -> dict: ...

    def files_mv(self, source: str, destination: str) -> None: ...

    def files_cp(self, source: str, destination: str, parents: bool = False) -> None: ...

    def files_rm(self, path: str, recursive: bool = False) -> None: ...

    def files_mkdir(self, path: str, parents: bool = False) -> None: ...

    def name_publish(
        self,
        ipfs_path: str,
        key: str = "self",
        lifetime: str = "24h",
        offline: bool = False,
        allow_offline: bool = False,
    ) -> dict: ...

    def key_gen(self, name: str) -> dict: ...

    def key_list(self) -> list: ...

    def pin_remote_add(self, service: str, cid: str, name: str = None) -> dict: ...


def _flag(value: bool) -> str:
    return "true" if value else "false"


class IPFSClient:
    """HTTP client for the IPFS (kubo) RPC API."""

    def __init__(self, host: str = "127.0.0.1", port: int = 5001, timeout: float = None):
        """
        Initialize IPFS client.

        Args:
            host: Hostname or IP of IPFS node
            port: IPFS RPC port (default 5001)
            timeout: Per-request timeout in seconds (None waits indefinitely)
        """
        self.base_url = f"http://{host}:{port}/api/v0"
        self.timeout = timeout
        self.session = requests.Session()

    def _request(self, endpoint: str, params=None, **kwargs) -> requests.Response:
        """Make RPC request. kubo only accepts POST."""
        url = f"{self.base_url}{endpoint}"

        logger.debug(f"Request: POST {url} params={params}")

        try:
            response = self.session.post(url, params=params, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise NodeAPIError(str(e)) from e

        logger.debug(f"Response status: {response.status_code}")
        if logger.isEnabledFor(logging.DEBUG) and not kwargs.get("stream"):
            if endpoint in BINARY_ENDPOINTS:
                body_preview = repr(response.content[:200])
            else:
                # Truncate body for logging (first 2000 chars)
                body_preview = response.text[:2000] or "(empty)"
            logger.debug(f"Response body: {body_preview}")

        if response.status_code >= 400:
            try:
                error_data = response.json()
                msg = error_data.get("Message", response.text)
            except ValueError:
                error_data = None
                msg = response.text
            raise NodeAPIError(msg, response.status_code, error_data)

        return response

    def _json(self, endpoint: str, params=None, **kwargs) -> dict:
        response = self._request(endpoint, params=params, **kwargs)
        if not response.text:
            return {}
        # Some commands answer with NDJSON; the last line is the summary
        lines = [line for line in response.text.strip().split("\n") if line]
        return json.loads(lines[-1])

    def id(self) -> dict:
        """
        Get IPFS peer information.

        Returns dict with: ID, PublicKey, Addresses, AgentVersion, etc.
        """
        return self._json("/id")

    def add(self, name: str, contents: Contents, pin: bool = False) -> dict:
        """
        Add contents to the blockstore.

        Streams the body with MultipartEncoder so large payloads and open
        file handles are not buffered in memory.

        Args:
            name: Filename recorded in the add response
            contents: bytes, str or a binary file object
            pin: Pin the resulting CID on this node

        Returns:
            Dict with 'Name', 'Hash' and 'Size'
        """
        params = {"pin": _flag(pin), "wrap-with-directory": "false"}
        encoder = MultipartEncoder(
            fields=[("file", (name, contents, "application/octet-stream"))]
        )
        logger.debug(f"add: name={name}, pin={pin}, content_length={encoder.len}")
        return self._json(
            "/add",
            params=params,
            data=encoder,
            headers={"Content-Type": encoder.content_type},
        )

    def files_stat(self, path: str) -> dict:
        """
        Stat an MFS path.

        Returns dict with: Hash, Size, CumulativeSize, Blocks, Type
        """
        return self._json("/files/stat", params={"arg": path})

    def files_read(self, path: str, stream: bool = False) -> Union[bytes, Iterator[bytes]]:
        """Read an MFS file, as bytes or as an iterator of chunks."""
        response = self._request("/files/read", params={"arg": path}, stream=stream)
        if stream:
            return response.iter_content(chunk_size=8192)
        return response.content

    def files_ls(self, path: str, long: bool = True, unsorted: bool = True) -> dict:
        """
        List an MFS directory.

        Returns dict with 'Entries': list of {Name, Type, Size, Hash}.
        kubo returns null Entries for an empty directory.
        """
        params = {"arg": path, "long": _flag(long), "U": _flag(unsorted)}
        return self._json("/files/ls", params=params)

    def files_mv(self, source: str, destination: str) -> None:
        self._request("/files/mv", params=[("arg", source), ("arg", destination)])

    def files_cp(self, source: str, destination: str, parents: bool = False) -> None:
        params = [("arg", source), ("arg", destination), ("parents", _flag(parents))]
        self._request("/files/cp", params=params)

    def files_rm(self, path: str, recursive: bool = False) -> None:
        self._request("/files/rm", params={"arg": path, "recursive": _flag(recursive)})

    def files_mkdir(self, path: str, parents: bool = False) -> None:
        self._request("/files/mkdir", params={"arg": path, "parents": _flag(parents)})

    def name_publish(
        self,
        ipfs_path: str,
        key: str = "self",
        lifetime: str = "24h",
        offline: bool = False,
        allow_offline: bool = False,
    ) -> dict:
        """
        Publish an IPNS record.

        Args:
            ipfs_path: Value to publish, e.g. /ipfs/<cid>
            key: Keystore key name to sign with
            lifetime: Record lifetime as a duration string
            offline: Run the command without touching the network
            allow_offline: Publish even if the node cannot reach peers

        Returns:
            Dict with 'Name' (the IPNS name) and 'Value'
        """
        params = {
            "arg": ipfs_path,
            "key": key,
            "lifetime": lifetime,
            "allow-offline": _flag(allow_offline),
        }
        if offline:
            params["offline"] = "true"
        return self._json("/name/publish", params=params)

    def key_gen(self, name: str) -> dict:
        """Generate a new keypair. Returns dict with 'Name' and 'Id'."""
        return self._json("/key/gen", params={"arg": name, "type": "ed25519"})

    def key_list(self) -> list:
        """List keystore keys as dicts with 'Name' and 'Id'."""
        return self._json("/key/list").get("Keys") or []

    def pin_remote_add(self, service: str, cid: str, name: str = None) -> dict:
        """Pin a CID on a configured remote pinning service."""
        params = {"arg": f"/ipfs/{cid}", "service": service}
        if name:
            params["name"] = name
        return self._json("/pin/remote/add", params=params)
