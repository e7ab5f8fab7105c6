"""Error taxonomy shared by the ledgers, the scheduler and the API layer.

Services raise these; routers never catch them individually.  A single
exception handler in certsvc.main maps each class to an HTTP status,
so the mapping lives in one table (STATUS_CODES below).
"""

from __future__ import annotations


class CertificationError(Exception):
    """Base class for every domain error the service surfaces."""

    code = "certification_error"


class NotEligible(CertificationError):
    """The learner has not finished every course and writing in the category."""

    code = "not_eligible"


class InvalidState(CertificationError):
    """The requested transition is not valid from the record's current state."""

    code = "invalid_state"


class NotFound(CertificationError):
    """The record does not exist (or no longer exists) for this caller."""

    code = "not_found"


class DeletionAlreadyFinalized(NotFound):
    """cancel_deletion lost the race: the sweep already removed the record."""

    code = "too_late_to_cancel"


class UnknownCategory(NotFound):
    code = "unknown_category"


class DataUnavailable(CertificationError):
    """The backing store could not be read or written.

    The service never retries; callers may retry with backoff.
    """

    code = "data_unavailable"


class InvalidPayload(CertificationError, ValueError):
    """Notification related_data does not match its type."""

    code = "invalid_payload"


# Most specific classes first: lookup walks the MRO of the raised error.
STATUS_CODES: dict[type[CertificationError], int] = {
    NotEligible: 409,
    InvalidState: 409,
    DeletionAlreadyFinalized: 410,
    UnknownCategory: 404,
    NotFound: 404,
    DataUnavailable: 503,
    InvalidPayload: 422,
    CertificationError: 400,
}


def status_code_for(exc: CertificationError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]  # type: ignore[index]
    return 500
