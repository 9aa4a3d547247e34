"""Pytest fixtures for testing"""

import pytest
from datetime import datetime
from typing import Callable, Generator, List
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from advancepay_gateway.config import Settings
from advancepay_gateway.container import AdvancePayServices, build_services
from advancepay_gateway.domain.models import InsertionMessages, LoanApplicant
from advancepay_gateway.infrastructure.database.models import (
    AdvancePayRollover,
    AdvancePayRolloverAction,
    Base,
    TeleTrackInquiry,
)


@pytest.fixture
def engine(tmp_path) -> Generator[Engine, None, None]:
    """File-backed SQLite database shared by the test and the bus worker threads"""
    test_engine = create_engine(
        f"sqlite:///{tmp_path / 'advancepay.db'}",
        connect_args={"check_same_thread": False, "timeout": 15},
    )
    Base.metadata.create_all(bind=test_engine)
    try:
        yield test_engine
    finally:
        Base.metadata.drop_all(bind=test_engine)
        test_engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """Session for seeding and inspecting rows"""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        rollover_completion_timeout_seconds=5.0,
        loan_decision_max_attempts=10,
        loan_decision_poll_interval_seconds=0.0,
        event_bus_workers=8,
    )


@pytest.fixture
def make_services(session_factory: sessionmaker, test_settings: Settings):
    """Build service containers; every container built is shut down after the test"""
    built: List[AdvancePayServices] = []

    def _make(subscribe_logging_handler: bool = True, **overrides) -> AdvancePayServices:
        config = test_settings.model_copy(update=overrides) if overrides else test_settings
        services = build_services(session_factory, config=config, subscribe_logging_handler=subscribe_logging_handler)
        built.append(services)
        return services

    yield _make

    for services in built:
        services.shutdown()


@pytest.fixture
def add_rollover(db: Session) -> Callable[..., AdvancePayRollover]:
    """Insert a rollover qualification record"""

    def _add(
        acct: int = 1001,
        sfx: int | None = 3,
        qualify: int | None = 1,
        note: str | None = None,
        resp_code: str | None = "RC01",
        loan_fee: float | None = 45.0,
        orig_bal: float | None = 300.0,
    ) -> AdvancePayRollover:
        record = AdvancePayRollover(
            acct=acct,
            sfx=sfx,
            qualify=qualify,
            note=note,
            resp_code=resp_code,
            loan_fee=loan_fee,
            orig_bal=orig_bal,
        )
        db.add(record)
        db.commit()
        return record

    return _add


@pytest.fixture
def count_actions(session_factory: sessionmaker) -> Callable[[], List[AdvancePayRolloverAction]]:
    """Fresh read of all rollover action rows"""

    def _actions() -> List[AdvancePayRolloverAction]:
        with session_factory() as session:
            return session.query(AdvancePayRolloverAction).order_by(AdvancePayRolloverAction.id).all()

    return _actions


@pytest.fixture
def applicant() -> LoanApplicant:
    return LoanApplicant(
        first_name="Dana",
        last_name="Whitfield",
        birthdate="1985-04-12",
        ssn="123-45-6789",
        address_1="12 Elm St",
        city="Springfield",
        state="IL",
        zip_code="62701",
        home_phone="2175550100",
        work_phone="2175550199",
        employer="Acme Corp",
        email="dana@example.com",
    )


@pytest.fixture
def insertion_messages() -> InsertionMessages:
    return InsertionMessages(
        loch="Advance Pay loan of ${amount} to {account}-{suffix}",
        lomd="Advance Pay memo {account} {amount}",
        mmch="Advance Pay applicant {first_name} {last_name}",
        lofe="Advance Pay fee on {amount}",
    )


class DecisionEngineStub:
    """
    Stands in for the poller's sleep. On the configured call it marks every
    pending inquiry as decided, the way the external decision batch does.
    """

    def __init__(self, session_factory: sessionmaker, decide_on_call: int | None = None, **fields):
        self.session_factory = session_factory
        self.decide_on_call = decide_on_call
        self.fields = {
            "new_inserted": "N",
            "tran_date": datetime(2026, 3, 2, 10, 0),
            "new_suffix": 7,
            **fields,
        }
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        if self.decide_on_call is not None and len(self.calls) == self.decide_on_call:
            with self.session_factory() as session:
                for inquiry in session.query(TeleTrackInquiry).filter(TeleTrackInquiry.new_inserted == "Y"):
                    for name, value in self.fields.items():
                        setattr(inquiry, name, value)
                session.commit()


@pytest.fixture
def decision_engine(session_factory: sessionmaker):
    def _make(decide_on_call: int | None = None, **fields) -> DecisionEngineStub:
        return DecisionEngineStub(session_factory, decide_on_call, **fields)

    return _make
