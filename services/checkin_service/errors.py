"""Errors raised by the check-in service's orchestration layer.

Single-entity lookups in the repositories return ``None``; these errors are
what the engines raise once absence or a failed precondition must stop an
operation.
"""

from fastapi import status
from libs.common.error_handler import ServiceError


class CheckInServiceError(ServiceError):
    pass


class NotFoundError(CheckInServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class PreconditionFailed(CheckInServiceError):
    code = "precondition_failed"


class DisclaimerRequired(PreconditionFailed):
    code = "disclaimer_required"

    def __init__(self, athlete_id: str, host_id: str):
        self.athlete_id = athlete_id
        self.host_id = host_id
        super().__init__("Athlete must sign this host's disclaimer before checking in")


class AlreadyCheckedIn(PreconditionFailed):
    code = "already_checked_in"

    def __init__(self, activity_id: str):
        self.activity_id = activity_id
        super().__init__("Athlete has already checked in at this host this week")


class LimitExceeded(PreconditionFailed):
    code = "limit_exceeded"


class AccessDenied(CheckInServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "access_denied"
