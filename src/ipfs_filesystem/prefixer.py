# Author: PB and Claude
# Date: 2026-10-19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# src/ipfs_filesystem/prefixer.py

"""Map logical adapter paths onto absolute MFS paths and back."""


class PathPrefixer:
    """Prepend a fixed prefix to logical paths."""

    def __init__(self, prefix: str = "", separator: str = "/"):
        self.separator = separator
        self.prefix = prefix.rstrip("\\/")
        if self.prefix or prefix.startswith(separator):
            self.prefix += separator

    def prefix_path(self, path: str) -> str:
        return self.prefix + path.lstrip("\\/")

    def strip_prefix(self, path: str) -> str:
        # MFS listings return bare entry names, which never carry the prefix
        if self.prefix and path.startswith(self.prefix):
            return path[len(self.prefix):]
        return path.lstrip("\\/")

    def strip_directory_prefix(self, path: str) -> str:
        return self.strip_prefix(path).rstrip("\\/")

    def location(self, path: str) -> str:
        """Absolute node path for a logical path."""
        return "/" + self.prefix_path(path).strip("/")
