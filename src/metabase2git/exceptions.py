"""Custom exceptions for metabase2git."""


class Metabase2gitError(Exception):
    """Base exception for metabase2git operations."""


class ConfigError(Metabase2gitError):
    """Required configuration is missing or invalid."""


class AuthError(Metabase2gitError):
    """Session exchange with Metabase failed."""


class TransportError(Metabase2gitError):
    """A request to Metabase failed or returned an unusable response."""


class IntegrityError(Metabase2gitError):
    """A tree item has no matching artifact record."""


class SerializationGap(Metabase2gitError):
    """An artifact's query could not be reduced to SQL text."""


class FilesystemError(Metabase2gitError):
    """A directory or file could not be written."""


class VersionControlError(Metabase2gitError):
    """A git operation failed."""
