# Overview: Error taxonomy shared by services and routes.

"""
Onboarding Errors

Every error carries the HTTP status its route answers with, so blueprints
can translate them without a per-route mapping table.

- ValidationError:   malformed or missing input, fixed by the user (400)
- NotFoundError:     document absent from status storage or spreadsheet (404)
- ConflictError:     create requested against an existing merchant (409)
- StorageError:      read-side store failure (500)
- PersistenceError:  write-side store failure (500)
- PartialWriteError: write failure after at least one step committed (500)
"""

from __future__ import annotations


class OnboardingError(Exception):
    """Base class for all onboarding failures."""

    http_status = 500


class ValidationError(OnboardingError, ValueError):
    """400-level input problem."""

    http_status = 400


class MissingIdentifierError(ValidationError):
    """Edit requested without any merchant identifier to edit."""


class NotFoundError(OnboardingError):
    """404-level missing record."""

    http_status = 404


class VendorNotFoundError(NotFoundError):
    """Raised when a document has no vendor status record."""


class SheetRowNotFoundError(NotFoundError):
    """Raised when a document is absent from the prospect spreadsheet."""


class ConflictError(OnboardingError):
    """409-level business rule conflict."""

    http_status = 409


class ModeConflictError(ConflictError):
    """
    Client asked for create against a document that already has a merchant.

    Carries the resolution so the caller can reload in edit mode.
    """

    def __init__(self, message: str, resolution=None):
        super().__init__(message)
        self.resolution = resolution


class StorageError(OnboardingError):
    """Store unavailable while reading."""

    http_status = 500


class PersistenceError(OnboardingError):
    """Store failure while writing; the original exception is chained."""

    http_status = 500

    def __init__(self, message: str, *, step: str | None = None):
        super().__init__(message)
        self.step = step


class PartialWriteError(PersistenceError):
    """
    A submission step failed after earlier steps were committed.

    The committed rows stay in place and are already linked to the vendor
    status record, so re-submitting resolves to edit mode and reuses them.
    """

    def __init__(self, message: str, *, step: str | None = None, committed_steps: list[str] | None = None):
        super().__init__(message, step=step)
        self.committed_steps = list(committed_steps or [])


class SheetSourceError(OnboardingError):
    """Prospect spreadsheet unreachable or unreadable."""

    http_status = 502
