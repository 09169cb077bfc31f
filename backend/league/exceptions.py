from fastapi import HTTPException
from pydantic import BaseModel
from typing import Optional


class ProblemDetail(BaseModel):
    """RFC 7807 compliant error response."""

    type: str = "about:blank"
    title: str
    detail: Optional[str] = None
    status: int
    instance: Optional[str] = None
    code: str


class DomainException(Exception):
    """Base class for domain-specific exceptions."""

    def __init__(
        self,
        status_code: int,
        title: str,
        *,
        code: str,
        detail: str | None = None,
        type_: str = "about:blank",
    ) -> None:
        super().__init__(detail or title)
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type = type_
        self.code = code


class PlayerAlreadyExists(DomainException):
    def __init__(self, email: str) -> None:
        super().__init__(
            status_code=400,
            title="Player exists",
            detail=f"a player with email '{email}' already exists",
            code="player_exists",
        )


class PlayerNotFound(DomainException):
    def __init__(self, player_id: str) -> None:
        super().__init__(
            status_code=404,
            title="Player not found",
            detail=f"player '{player_id}' not found",
            code="player_not_found",
        )


class DeckNotFound(DomainException):
    def __init__(self, deck_id: str) -> None:
        super().__init__(
            status_code=404,
            title="Deck not found",
            detail=f"deck '{deck_id}' not found",
            code="deck_not_found",
        )


class PeriodNotFound(DomainException):
    def __init__(self, period_id: str) -> None:
        super().__init__(
            status_code=404,
            title="Period not found",
            detail=f"period '{period_id}' not found",
            code="period_not_found",
        )


class PendingMatchNotFound(DomainException):
    def __init__(self, pending_id: str) -> None:
        super().__init__(
            status_code=404,
            title="Pending match not found",
            detail=f"pending match '{pending_id}' not found",
            code="pending_match_not_found",
        )


class MatchLimitReached(DomainException):
    def __init__(self, player_name: str, *, own: bool = False) -> None:
        detail = (
            "You have reached your match limit for this period"
            if own
            else f"{player_name} has reached their match limit for this period"
        )
        super().__init__(
            status_code=409,
            title="Match limit reached",
            detail=detail,
            code="match_limit_reached",
        )


class InvalidMatch(DomainException):
    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=422,
            title="Invalid match",
            detail=detail,
            code="invalid_match",
        )


class NotMatchParticipant(DomainException):
    def __init__(self, player_id: str) -> None:
        super().__init__(
            status_code=403,
            title="Not a participant",
            detail=f"player '{player_id}' is not part of this match",
            code="not_match_participant",
        )


class ApprovalNotExpected(DomainException):
    def __init__(self, player_id: str) -> None:
        super().__init__(
            status_code=409,
            title="Approval not expected",
            detail=f"player '{player_id}' has already approved this match",
            code="approval_not_expected",
        )


class AdminRequired(DomainException):
    def __init__(self) -> None:
        super().__init__(
            status_code=403,
            title="Admin required",
            detail="only league admins can manage periods",
            code="admin_required",
        )


def http_problem(
    status_code: int,
    detail: str,
    code: str,
    *,
    headers: Optional[dict[str, str]] = None,
) -> HTTPException:
    """Create an HTTPException with an attached problem code."""

    exc = HTTPException(status_code=status_code, detail=detail, headers=headers)
    setattr(exc, "code", code)
    return exc
