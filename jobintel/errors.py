"""Named failure conditions surfaced to the calling UI layer."""
from __future__ import annotations


class JobIntelError(Exception):
    """Base class for every failure this package raises on purpose."""


class NoProfileConfigured(JobIntelError):
    def __init__(self, message: str = "No autofill profile configured. Please set up your profile in settings.") -> None:
        super().__init__(message)


class NoCompatibleFields(JobIntelError):
    def __init__(self, message: str = "No compatible form fields found on this page.") -> None:
        super().__init__(message)


class NoJobsFound(JobIntelError):
    def __init__(self, message: str = "No job postings found on this page.") -> None:
        super().__init__(message)


class StoreError(JobIntelError):
    """The persistent key-value store could not be read or written."""


class RateLimited(JobIntelError):
    """The local request window is used up."""
