# Author: PB and Claude
# Date: 2026-10-19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# src/ipfs_filesystem/errors.py

"""
Exception hierarchy for the IPFS filesystem adapter.

ValidationError and its subclasses are raised before any node call.
FilesystemOperationFailed and its subclasses wrap a NodeAPIError raised
by the node client, keeping the original message.
"""


class IPFSFilesystemError(Exception):
    """Base exception for adapter errors."""
    pass


class ValidationError(IPFSFilesystemError):
    """Raised when options or arguments are invalid."""
    pass


class UnsupportedOption(ValidationError):
    """Raised for an unknown gateway service or style."""
    pass


class MissingIdentifier(ValidationError):
    """Raised when a gateway URL needs a CID or IPNS name that was not given."""
    pass


class MissingDomain(ValidationError):
    """Raised when the dnslink style is used without a domain."""
    pass


class FilesystemOperationFailed(IPFSFilesystemError):
    """Raised when a node call backing a filesystem operation fails."""

    operation = "operate on"

    def __init__(self, location: str, reason: str = "", cause: Exception = None):
        message = f"Unable to {self.operation} {location}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.location = location
        self.reason = reason
        self.cause = cause

    @classmethod
    def from_error(cls, location: str, error: Exception) -> "FilesystemOperationFailed":
        return cls(location, str(error), error)


class NotFound(FilesystemOperationFailed):
    operation = "find"


class UnableToReadFile(NotFound):
    operation = "read file at"


class UnableToRetrieveMetadata(NotFound):
    operation = "retrieve metadata for"


class UploadFailed(FilesystemOperationFailed):
    operation = "write file at"


class TransportFailure(FilesystemOperationFailed):
    """Raised for node failures outside the read/metadata/write paths."""
    operation = "complete request for"


class UnableToSetVisibility(FilesystemOperationFailed):
    operation = "set visibility for"


class UnableToDelete(TransportFailure):
    operation = "delete"


class UnableToCreateDirectory(TransportFailure):
    operation = "create directory at"


class UnableToMove(TransportFailure):
    operation = "move"


class UnableToCopy(TransportFailure):
    operation = "copy"


class UnableToPublish(TransportFailure):
    operation = "publish"
