"""Exceptions raised by CAS Overlay."""


class CasOverlayError(Exception):
    """Base exception for cas-overlay errors."""


class ConfigError(CasOverlayError):
    """Invalid or incomplete project configuration."""


class ArchiveError(CasOverlayError):
    """The resources archive could not be read or extracted."""


class ArchiveNotFoundError(ArchiveError):
    """No archive in the dependency set matched the expected name."""


class ResourceConflictError(CasOverlayError):
    """A reference file collides with a non-file path in the local tree."""
