# Author: PB and Claude
# Date: 2026-10-19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# src/ipfs_filesystem/gateway.py

"""
Gateway URL resolution.

Builds https URLs for content behind an IPFS gateway in one of three
addressing styles:

    path       https://{url}/{service}/{identifier}/{file}
    subdomain  https://{identifier}.{service}.{url}/{file}
    dnslink    https://{domain}/{path}/{file}                 (prefer_domain)
               https://{url}/ipns/{domain}/{path}/{file}      (otherwise)

The identifier is the CID for the ipfs service and the IPNS name for the
ipns service. No I/O happens here.
"""

from typing import Optional

from ipfs_filesystem.config import GatewayConfig
from ipfs_filesystem.errors import MissingDomain, MissingIdentifier


def _trim(segment: Optional[str]) -> str:
    return (segment or "").strip("/")


def _join(*segments: Optional[str]) -> str:
    return "/".join(s for s in (_trim(seg) for seg in segments) if s)


class GatewayResolver:
    """Turn a path, file and identifier into a gateway URL."""

    def __init__(self, config: Optional[GatewayConfig] = None):
        self.config = config or GatewayConfig()
        self._domains = {
            "path": self._gateway_host,
            "subdomain": self._subdomain_host,
            "dnslink": self._dnslink_host,
        }
        self._paths = {
            "path": self._path_style_path,
            "subdomain": self._subdomain_path,
            "dnslink": self._dnslink_path,
        }

    @property
    def service(self) -> str:
        return self.config.service

    @property
    def style(self) -> str:
        return self.config.style

    def resolve(
        self,
        path: Optional[str] = None,
        file: Optional[str] = None,
        cid: Optional[str] = None,
        ipns: Optional[str] = None,
    ) -> str:
        """
        Resolve a gateway URL.

        Args:
            path: Directory part of the resource (used by dnslink)
            file: File part of the resource
            cid: Content identifier, required for the ipfs service
            ipns: IPNS name, required for the ipns service

        Returns:
            Absolute https URL

        Raises:
            MissingIdentifier: If the service's identifier is missing
            MissingDomain: If the dnslink style has no domain configured
        """
        self._validate(cid, ipns)
        identifier = cid if self.service == "ipfs" else ipns
        host = self._domains[self.style](identifier)
        url_path = self._paths[self.style](path, file, identifier)
        return f"https://{host}/{url_path}"

    def _validate(self, cid: Optional[str], ipns: Optional[str]) -> None:
        if self.style != "dnslink":
            if self.service == "ipfs" and not cid:
                raise MissingIdentifier(
                    f'Gateway with service "ipfs" and style "{self.style}" requires a CID.'
                )
            if self.service == "ipns" and not ipns:
                raise MissingIdentifier(
                    f'Gateway with service "ipns" and style "{self.style}" requires an IPNS identifier.'
                )
        else:
            self.check_domain()

    def check_domain(self) -> None:
        """Raise MissingDomain if the dnslink style has no domain."""
        if self.style == "dnslink" and not self.config.domain:
            raise MissingDomain(f'Gateway with style "{self.style}" requires a domain.')

    def _gateway_host(self, identifier: Optional[str]) -> str:
        return self.config.url

    def _subdomain_host(self, identifier: Optional[str]) -> str:
        return f"{identifier}.{self.service}.{self.config.url}"

    def _dnslink_host(self, identifier: Optional[str]) -> str:
        if self.config.prefer_domain:
            return self.config.domain
        return self.config.url

    def _path_style_path(self, path, file, identifier) -> str:
        return f"{self.service}/{identifier}/{_trim(file)}"

    def _subdomain_path(self, path, file, identifier) -> str:
        return _trim(file)

    def _dnslink_path(self, path, file, identifier) -> str:
        resource = _join(path, file)
        if not self.config.prefer_domain and self.config.url:
            return _join("ipns", self.config.domain, resource)
        return resource
