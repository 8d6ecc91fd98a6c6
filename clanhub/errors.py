from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class ErrorCode(StrEnum):
    INVALID_INPUT = "invalid_input"
    INVALID_NAME = "invalid_name"
    DUPLICATE_CLAN = "duplicate_clan"
    UNKNOWN_CLAN = "unknown_clan"
    UNKNOWN_MEMBER = "unknown_member"
    INVALID_RANK = "invalid_rank"
    UNAUTHORIZED = "unauthorized"
    INSUFFICIENT_POINTS = "insufficient_points"
    INVALID_AMOUNT = "invalid_amount"
    PERSISTENCE_FAILURE = "persistence_failure"
    EXTERNAL_COLLABORATOR_FAILURE = "external_collaborator_failure"


# failures which may leave a multi-step operation half-applied
FAULT_CODES = frozenset(
    {
        ErrorCode.PERSISTENCE_FAILURE,
        ErrorCode.EXTERNAL_COLLABORATOR_FAILURE,
    },
)


class Error(BaseModel):
    user_feedback: str
    error_code: ErrorCode

    @property
    def is_fault(self) -> bool:
        return self.error_code in FAULT_CODES
