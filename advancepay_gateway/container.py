"""Service wiring for the Advance Pay behaviors"""

from dataclasses import dataclass
from typing import Callable

from sqlalchemy.orm import Session

from advancepay_gateway.config import Settings, settings as default_settings
from advancepay_gateway.events.bus import EventBus
from advancepay_gateway.events.completion import CompletionRegistry
from advancepay_gateway.events.events import RolloverLoggingCompletedEvent
from advancepay_gateway.events.handlers import RolloverLoggingHandler
from advancepay_gateway.infrastructure.clients.cardvalet import CardValetClient
from advancepay_gateway.services.digital_wallet import DigitalWalletSsoService
from advancepay_gateway.services.loan_application import LoanApplicationPoller
from advancepay_gateway.services.loan_eligibility import LoanEligibilityService
from advancepay_gateway.services.rollover_coordinator import RolloverRequestCoordinator
from advancepay_gateway.services.rollover_eligibility import RolloverEligibilityStore


@dataclass
class AdvancePayServices:
    bus: EventBus
    completions: CompletionRegistry
    eligibility: RolloverEligibilityStore
    rollovers: RolloverRequestCoordinator
    loans: LoanApplicationPoller
    loan_eligibility: LoanEligibilityService
    digital_wallet: DigitalWalletSsoService

    def shutdown(self) -> None:
        self.bus.shutdown(wait=True)


def build_services(
    session_factory: Callable[[], Session],
    config: Settings | None = None,
    subscribe_logging_handler: bool = True,
) -> AdvancePayServices:
    """
    Assemble the services around one event bus and completion registry.

    With subscribe_logging_handler=False no RolloverRequestedEvent subscriber is
    registered; the caller is expected to publish completions itself.
    """
    config = config or default_settings

    bus = EventBus(max_workers=config.event_bus_workers)
    completions = CompletionRegistry()
    bus.subscribe(RolloverLoggingCompletedEvent, completions.on_logging_completed)
    if subscribe_logging_handler:
        RolloverLoggingHandler(bus, session_factory).register()

    eligibility = RolloverEligibilityStore(session_factory)
    return AdvancePayServices(
        bus=bus,
        completions=completions,
        eligibility=eligibility,
        rollovers=RolloverRequestCoordinator(
            bus,
            completions,
            eligibility,
            session_factory,
            completion_timeout=config.rollover_completion_timeout_seconds,
        ),
        loans=LoanApplicationPoller(
            session_factory,
            max_attempts=config.loan_decision_max_attempts,
            poll_interval=config.loan_decision_poll_interval_seconds,
        ),
        loan_eligibility=LoanEligibilityService(session_factory),
        digital_wallet=DigitalWalletSsoService(
            CardValetClient(config=config),
            config=config,
        ),
    )
