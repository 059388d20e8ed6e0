"""
Exception hierarchy for hackmd_index.

Every failure in the update or index phase surfaces as one of these types.
None of them are recovered locally: they propagate to the CLI, which prints
the message and exits non-zero.
"""


class HackMDIndexError(Exception):
    """Base class for all errors raised by hackmd_index."""


class AuthenticationError(HackMDIndexError):
    """Login to the note service failed (bad credentials, missing CSRF token)."""


class NetworkError(HackMDIndexError):
    """An HTTP request to HackMD or Meilisearch failed."""


class DatabaseError(HackMDIndexError):
    """The JSON database could not be read, written or decoded."""


class ArgumentError(HackMDIndexError):
    """The command line is missing a required option or combination."""
