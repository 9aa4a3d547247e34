"""Rollover logging subscriber - records each rollover request and reports completion"""

import logging
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from advancepay_gateway.events.bus import EventBus
from advancepay_gateway.events.events import RolloverLoggingCompletedEvent, RolloverRequestedEvent
from advancepay_gateway.infrastructure.database.repositories import RolloverLogRepository

logger = logging.getLogger("advancepay.events.handlers")


class RolloverLoggingHandler:
    """
    Writes a RolloverRequestLog row for every RolloverRequestedEvent, then publishes
    exactly one RolloverLoggingCompletedEvent with the same correlation id.
    """

    def __init__(self, bus: EventBus, session_factory: Callable[[], Session]):
        self.bus = bus
        self.session_factory = session_factory

    def register(self) -> None:
        self.bus.subscribe(RolloverRequestedEvent, self.handle)

    def handle(self, event: RolloverRequestedEvent) -> None:
        try:
            with self.session_factory() as db:
                try:
                    RolloverLogRepository(db).create_log(
                        correlation_id=event.correlation_id,
                        acct=event.request.member_account_number,
                        sfx=event.request.loan_suffix,
                        requested_at=event.occurred_at,
                    )
                    db.commit()
                except SQLAlchemyError:
                    db.rollback()
                    raise
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to log rollover request: {e}",
                extra={"correlation_id": event.correlation_id, "step": "rollover_logging"},
            )
            self.bus.publish(RolloverLoggingCompletedEvent.failed(event.correlation_id, e))
            return

        logger.info(
            "Rollover request logged",
            extra={"correlation_id": event.correlation_id, "step": "rollover_logging"},
        )
        self.bus.publish(RolloverLoggingCompletedEvent.succeeded(event.correlation_id))
