# Author: PB and Claude
# Date: 2026-10-19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# test/conftest.py

"""Shared fixtures: an in-memory stand-in for a kubo node."""

import hashlib
import posixpath

import pytest

from ipfs_filesystem.node_api import NodeAPIError


def _norm(path: str) -> str:
    path = "/" + path.strip("/")
    return posixpath.normpath(path)


class FakeNode:
    """In-memory NodeClient: a blockstore, an MFS tree and a keystore."""

    def __init__(self):
        self.blocks = {}            # cid -> bytes
        self.mfs = {"/": None}      # path -> cid (file) or None (directory)
        self.keys = {"self": self._id("self")}
        self.records = {}           # ipns name -> published value
        self.pins = set()
        self.remote_pins = []
        self.calls = []

    @staticmethod
    def _cid(data: bytes) -> str:
        return "Qm" + hashlib.sha256(data).hexdigest()[:44]

    @staticmethod
    def _id(name: str) -> str:
        return "k51" + hashlib.sha256(name.encode()).hexdigest()[:40]

    def _require(self, path: str) -> str:
        path = _norm(path)
        if path not in self.mfs:
            raise NodeAPIError(f"{path}: file does not exist", 500)
        return path

    def _children(self, path: str) -> list:
        return sorted(p for p in self.mfs if p != "/" and posixpath.dirname(p) == path)

    def _subtree(self, path: str) -> list:
        prefix = path.rstrip("/") + "/"
        return [p for p in self.mfs if p == path or p.startswith(prefix)]

    def _dir_hash(self, path: str) -> str:
        listing = ",".join(
            f"{posixpath.basename(c)}={self.mfs[c] or self._dir_hash(c)}"
            for c in self._children(path)
        )
        return self._cid(f"dir:{listing}".encode())

    def _hash(self, path: str) -> str:
        return self.mfs[path] or self._dir_hash(path)

    def _check_parent(self, path: str) -> None:
        parent = posixpath.dirname(path)
        if parent not in self.mfs:
            raise NodeAPIError(f"{parent}: file does not exist", 500)
        if self.mfs[parent] is not None:
            raise NodeAPIError(f"{parent}: not a directory", 500)

    # -- NodeClient ------------------------------------------------------

    def add(self, name, contents, pin=False):
        self.calls.append("add")
        if hasattr(contents, "read"):
            contents = contents.read()
        if isinstance(contents, str):
            contents = contents.encode()
        cid = self._cid(contents)
        self.blocks[cid] = contents
        if pin:
            self.pins.add(cid)
        return {"Name": name, "Hash": cid, "Size": str(len(contents))}

    def files_stat(self, path):
        self.calls.append("files_stat")
        path = self._require(path)
        cid = self.mfs[path]
        if cid is None:
            return {"Hash": self._dir_hash(path), "Size": 0, "Type": "directory"}
        return {"Hash": cid, "Size": len(self.blocks[cid]), "Type": "file"}

    def files_read(self, path, stream=False):
        self.calls.append("files_read")
        path = self._require(path)
        cid = self.mfs[path]
        if cid is None:
            raise NodeAPIError(f"{path}: not a file", 500)
        data = self.blocks[cid]
        return iter([data]) if stream else data

    def files_ls(self, path, long=True, unsorted=True):
        self.calls.append("files_ls")
        path = self._require(path)
        if self.mfs[path] is not None:
            name = posixpath.basename(path)
            cid = self.mfs[path]
            return {"Entries": [{"Name": name, "Type": 0, "Size": len(self.blocks[cid]), "Hash": cid}]}
        entries = []
        for child in self._children(path):
            cid = self.mfs[child]
            entries.append({
                "Name": posixpath.basename(child),
                "Type": 1 if cid is None else 0,
                "Size": 0 if cid is None else len(self.blocks[cid]),
                "Hash": self._hash(child),
            })
        # kubo answers null for an empty directory
        return {"Entries": entries or None}

    def files_mkdir(self, path, parents=False):
        self.calls.append("files_mkdir")
        path = _norm(path)
        if path in self.mfs:
            if parents and self.mfs[path] is None:
                return
            raise NodeAPIError(f"{path}: file already exists", 500)
        if parents:
            parent = posixpath.dirname(path)
            if parent not in self.mfs:
                self.files_mkdir(parent, parents=True)
        self._check_parent(path)
        self.mfs[path] = None

    def files_cp(self, source, destination, parents=False):
        self.calls.append("files_cp")
        destination = _norm(destination)
        if destination in self.mfs:
            raise NodeAPIError("directory already has entry by that name", 500)
        self._check_parent(destination)
        if source.startswith("/ipfs/"):
            cid = source[len("/ipfs/"):]
            if cid not in self.blocks:
                raise NodeAPIError(f"{cid}: block not found", 500)
            self.mfs[destination] = cid
            return
        source = self._require(source)
        for p in self._subtree(source):
            self.mfs[destination + p[len(source):]] = self.mfs[p]

    def files_mv(self, source, destination):
        self.calls.append("files_mv")
        source = self._require(source)
        destination = _norm(destination)
        if destination in self.mfs:
            raise NodeAPIError("directory already has entry by that name", 500)
        self._check_parent(destination)
        for p in self._subtree(source):
            self.mfs[destination + p[len(source):]] = self.mfs.pop(p)

    def files_rm(self, path, recursive=False):
        self.calls.append("files_rm")
        path = self._require(path)
        if path == "/":
            raise NodeAPIError("cannot delete root", 500)
        if self.mfs[path] is None and self._children(path) and not recursive:
            raise NodeAPIError(f"{path} is a directory, use -r to remove directories", 500)
        for p in self._subtree(path):
            del self.mfs[p]

    def name_publish(self, ipfs_path, key="self", lifetime="24h", offline=False, allow_offline=False):
        self.calls.append("name_publish")
        if key not in self.keys:
            raise NodeAPIError("no key by the given name was found", 500)
        name = self.keys[key]
        self.records[name] = {"value": ipfs_path, "lifetime": lifetime, "offline": offline}
        return {"Name": name, "Value": ipfs_path}

    def key_gen(self, name):
        self.calls.append("key_gen")
        if name in self.keys:
            raise NodeAPIError(f"key with name '{name}' already exists", 500)
        self.keys[name] = self._id(name)
        return {"Name": name, "Id": self.keys[name]}

    def key_list(self):
        self.calls.append("key_list")
        return [{"Name": k, "Id": v} for k, v in self.keys.items()]

    def pin_remote_add(self, service, cid, name=None):
        self.calls.append("pin_remote_add")
        self.remote_pins.append((service, cid, name))
        return {"Cid": cid, "Name": name or "", "Status": "pinned"}


@pytest.fixture
def node():
    return FakeNode()
