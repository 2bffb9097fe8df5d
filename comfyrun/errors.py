"""Domain exceptions for submission and run persistence."""

from typing import Optional

__all__ = [
    "ComfyRunError",
    "SubmissionError",
    "Unauthenticated",
    "InvalidResponse",
    "RetriesExhausted",
    "RetryableProviderTimeout",
    "RunStoreError",
    "DuplicateJob",
]


class ComfyRunError(Exception):
    """Base class for application specific errors."""

    code = "comfyrun_error"


class SubmissionError(ComfyRunError):
    """Base class for failures surfaced by the job submitter."""

    code = "submission_error"


class Unauthenticated(SubmissionError):
    """Raised when no principal is supplied for a submission."""

    code = "unauthenticated"


class InvalidResponse(SubmissionError):
    """Raised for a non-retryable provider error or a malformed response."""

    code = "invalid_response"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RetriesExhausted(SubmissionError):
    """Raised when every attempt ended in a gateway timeout or local timeout.

    Callers are expected to treat this as low severity: it is logged rather
    than shown to the user as an error.
    """

    code = "retries_exhausted"
    suppressible = True

    def __init__(self, attempts: int):
        super().__init__(f"Provider timed out on all {attempts} attempts")
        self.attempts = attempts


class RetryableProviderTimeout(ComfyRunError):
    """A single attempt hit HTTP 504 or the local timeout. Internal to retries."""

    code = "retryable_provider_timeout"


class RunStoreError(ComfyRunError):
    """Base class for persistence layer failures."""

    code = "run_store_error"


class DuplicateJob(RunStoreError):
    """Raised when a run with the same provider id already exists."""

    code = "duplicate_job"

    def __init__(self, run_id: str):
        super().__init__(f"Run {run_id} already exists")
        self.run_id = run_id
