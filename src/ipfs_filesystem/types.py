# Author: PB and Claude
# Date: 2026-10-19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# src/ipfs_filesystem/types.py

"""
Adapter Type Definitions

Dataclasses for adapter return types with serialization support.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union
import json


VISIBILITY_PUBLIC = "public"


class EntryType(str, Enum):
    FILE = "file"
    DIR = "dir"

    @classmethod
    def from_node(cls, value) -> "EntryType":
        """Normalize the node's type tag.

        files/ls reports 0 (file) or 1 (directory); files/stat reports
        "file" or "directory".
        """
        if value in (1, "1", "directory", "dir"):
            return cls.DIR
        return cls.FILE


@dataclass
class UploadResult:
    """Result of writing contents through the adapter."""
    path: str                               # Absolute MFS location
    content_hash: str                       # CID returned by add
    entry_type: EntryType                   # Always FILE for writes
    timestamp: datetime                     # When the write completed
    size: Optional[int] = None              # Size in bytes, if reported
    ipns_name: Optional[str] = None         # Set when the write published to IPNS

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "content_hash": self.content_hash,
            "entry_type": self.entry_type.value,
            "timestamp": self.timestamp.isoformat(),
            "size": self.size,
            "ipns_name": self.ipns_name,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: dict) -> "UploadResult":
        timestamp = data["timestamp"]
        if isinstance(timestamp, str):
            # Parse ISO format, handle both with and without timezone
            if timestamp.endswith("Z"):
                timestamp = timestamp[:-1] + "+00:00"
            timestamp = datetime.fromisoformat(timestamp)

        return cls(
            path=data["path"],
            content_hash=data["content_hash"],
            entry_type=EntryType(data.get("entry_type", EntryType.FILE.value)),
            timestamp=timestamp,
            size=data.get("size"),
            ipns_name=data.get("ipns_name"),
        )


@dataclass
class FileAttributes:
    """A file as seen through the adapter."""
    path: str
    file_size: Optional[int] = None
    visibility: str = VISIBILITY_PUBLIC
    last_modified: Optional[int] = None     # Unix timestamp
    mime_type: Optional[str] = None
    extra_metadata: dict = field(default_factory=dict)

    type = EntryType.FILE

    def is_file(self) -> bool:
        return True

    def is_dir(self) -> bool:
        return False

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "path": self.path,
            "file_size": self.file_size,
            "visibility": self.visibility,
            "last_modified": self.last_modified,
            "mime_type": self.mime_type,
            "extra_metadata": self.extra_metadata,
        }


@dataclass
class DirectoryAttributes:
    """A directory as seen through the adapter."""
    path: str
    visibility: str = VISIBILITY_PUBLIC
    last_modified: Optional[int] = None
    extra_metadata: dict = field(default_factory=dict)

    type = EntryType.DIR

    def is_file(self) -> bool:
        return False

    def is_dir(self) -> bool:
        return True

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "path": self.path,
            "visibility": self.visibility,
            "last_modified": self.last_modified,
            "extra_metadata": self.extra_metadata,
        }


StorageAttributes = Union[FileAttributes, DirectoryAttributes]


def now() -> datetime:
    return datetime.now(timezone.utc)
