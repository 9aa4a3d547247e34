"""
Typed domain events for the Advance Pay rollover workflow.

A rollover submission publishes RolloverRequestedEvent; the logging subscriber
answers with exactly one RolloverLoggingCompletedEvent carrying the same
correlation_id.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from advancepay_gateway.domain.models import ErrorDetail, RolloverRequest


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RolloverRequestedEvent:
    correlation_id: str
    request: RolloverRequest
    occurred_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def for_request(cls, request: RolloverRequest) -> RolloverRequestedEvent:
        """Create an event with a fresh correlation id"""
        return cls(correlation_id=str(uuid.uuid4()), request=request)


@dataclass(frozen=True)
class RolloverLoggingCompletedEvent:
    correlation_id: str
    is_successful: bool
    error: Optional[ErrorDetail] = None
    occurred_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def succeeded(cls, correlation_id: str) -> RolloverLoggingCompletedEvent:
        return cls(correlation_id=correlation_id, is_successful=True)

    @classmethod
    def failed(cls, correlation_id: str, exc: BaseException) -> RolloverLoggingCompletedEvent:
        return cls(correlation_id=correlation_id, is_successful=False, error=ErrorDetail.from_exception(exc))
