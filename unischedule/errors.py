"""Error hierarchy.

Malformed stored or imported records are never errors: the normalizer drops
them. What remains are problems the user has to see:

- ValidationError: bad user input (time format, empty title, PIN format)
- BackupError: an HTML document that cannot be restored
- CloudError: hosted backend / network failures. Local state is kept.
"""


class UniScheduleError(Exception):
    """Base exception for all application errors."""

    pass


class ValidationError(UniScheduleError):
    """User input rejected before any state was changed."""

    pass


class BackupError(UniScheduleError):
    """The document is not a restorable export of this application."""

    pass


class CloudError(UniScheduleError):
    """Hosted backend request failed.

    The message carries the backend's own error text where available.
    """

    pass


class CloudNotConfiguredError(CloudError):
    """No backend URL / key configured: the app runs in local-only mode."""

    pass


class AuthError(CloudError):
    """Sign-in / sign-up rejected, or the session is missing or expired."""

    pass
