"""Integration tests for rollover submission through the event bus and store"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from advancepay_gateway.domain.models import (
    ExceptionType,
    FailureKind,
    RolloverRequest,
    SubmissionState,
)
from advancepay_gateway.events.events import RolloverLoggingCompletedEvent, RolloverRequestedEvent
from advancepay_gateway.infrastructure.database.models import AdvancePayRolloverAction, RolloverRequestLog
from advancepay_gateway.services.rollover_coordinator import (
    INELIGIBLE_FOR_ROLLOVER_MESSAGE,
    ROLLOVER_TIMEOUT_MESSAGE,
    UNABLE_TO_LOG_MESSAGE,
)


def test_ineligible_loan_is_rejected_without_side_effects(make_services, add_rollover, count_actions, db):
    """qualify=0 with a non-rollover note never publishes or writes"""
    add_rollover(acct=1001, sfx=3, qualify=0, note="Other")
    services = make_services()
    published = []
    services.bus.subscribe(RolloverRequestedEvent, published.append)

    result = services.rollovers.submit(RolloverRequest("1001", 3))

    assert result.success is False
    assert result.state is SubmissionState.REJECTED
    assert result.reason == INELIGIBLE_FOR_ROLLOVER_MESSAGE
    assert result.failure_kind is FailureKind.INELIGIBLE
    assert result.correlation_id is None
    assert count_actions() == []
    assert db.query(RolloverRequestLog).count() == 0
    assert published == []


def test_processing_and_unknown_loans_are_rejected(make_services, add_rollover, count_actions):
    add_rollover(acct=1001, sfx=3, qualify=0, note="Rollover")
    services = make_services()

    for request in [RolloverRequest("1001", 3), RolloverRequest("1001", 99), RolloverRequest("not-a-number", 3)]:
        result = services.rollovers.submit(request)
        assert result.state is SubmissionState.REJECTED
        assert result.reason == INELIGIBLE_FOR_ROLLOVER_MESSAGE

    assert count_actions() == []


def test_qualified_loan_commits_rollover_action(make_services, add_rollover, count_actions, db):
    """Logged successfully: one action row copying the record's response code"""
    add_rollover(acct=1001, sfx=3, qualify=1, resp_code="RC42")
    services = make_services()

    result = services.rollovers.submit(RolloverRequest("1001", 3))

    assert result.success is True
    assert result.state is SubmissionState.COMMITTED
    assert result.reason == ""
    assert result.error is None

    actions = count_actions()
    assert len(actions) == 1
    assert actions[0].acct == 1001
    assert actions[0].sfx == 3
    assert actions[0].resp_code == "RC42"
    assert actions[0].post_result == "0"
    assert actions[0].new_inserted == "Y"

    log = db.query(RolloverRequestLog).filter_by(correlation_id=result.correlation_id).one()
    assert log.acct == "1001"
    assert log.sfx == 3
    assert services.completions.pending_count() == 0


def test_logging_failure_reports_unable_to_log(make_services, add_rollover, count_actions, engine):
    """The logging subscriber cannot write its audit row, so nothing is committed"""
    add_rollover(acct=1001, sfx=3, qualify=1)
    RolloverRequestLog.__table__.drop(bind=engine)
    services = make_services()

    result = services.rollovers.submit(RolloverRequest("1001", 3))

    assert result.success is False
    assert result.state is SubmissionState.FAILED
    assert result.reason == UNABLE_TO_LOG_MESSAGE
    assert result.failure_kind is FailureKind.LOGGING_FAILED
    assert result.exception_type is ExceptionType.BUSINESS
    assert result.error is not None
    assert result.error.type == "OperationalError"
    assert count_actions() == []

    RolloverRequestLog.__table__.create(bind=engine)


def test_unsuccessful_completion_event_writes_nothing(make_services, add_rollover, count_actions):
    add_rollover(acct=1001, sfx=3, qualify=1)
    services = make_services(subscribe_logging_handler=False)

    def reject(event):
        services.bus.publish(
            RolloverLoggingCompletedEvent.failed(event.correlation_id, RuntimeError("audit queue full"))
        )

    services.bus.subscribe(RolloverRequestedEvent, reject)

    result = services.rollovers.submit(RolloverRequest("1001", 3))

    assert result.success is False
    assert result.reason == UNABLE_TO_LOG_MESSAGE
    assert result.error.message == "audit queue full"
    assert count_actions() == []


def test_missing_completion_times_out_without_writing(make_services, add_rollover, count_actions):
    add_rollover(acct=1001, sfx=3, qualify=1)
    services = make_services(subscribe_logging_handler=False, rollover_completion_timeout_seconds=0.2)
    published = []
    services.bus.subscribe(RolloverRequestedEvent, published.append)

    result = services.rollovers.submit(RolloverRequest("1001", 3))

    assert result.success is False
    assert result.state is SubmissionState.TIMED_OUT
    assert result.reason == ROLLOVER_TIMEOUT_MESSAGE
    assert result.failure_kind is FailureKind.TIMEOUT
    assert result.error.type == "CompletionTimeoutError"
    assert services.completions.pending_count() == 0
    assert count_actions() == []

    # A completion arriving after the waiter gave up is dropped
    assert [e.correlation_id for e in published] == [result.correlation_id]
    late = RolloverLoggingCompletedEvent.succeeded(result.correlation_id)
    assert services.completions.complete(late) is False
    assert count_actions() == []


def test_unrelated_completion_does_not_release_waiter(make_services, add_rollover, count_actions):
    add_rollover(acct=1001, sfx=3, qualify=1)
    services = make_services(subscribe_logging_handler=False, rollover_completion_timeout_seconds=0.3)

    def answer_someone_else(event):
        services.bus.publish(RolloverLoggingCompletedEvent.succeeded("not-" + event.correlation_id))

    services.bus.subscribe(RolloverRequestedEvent, answer_someone_else)

    result = services.rollovers.submit(RolloverRequest("1001", 3))

    assert result.state is SubmissionState.TIMED_OUT
    assert count_actions() == []


def test_write_failure_is_reported_as_business_failure(make_services, add_rollover, engine):
    add_rollover(acct=1001, sfx=3, qualify=1)
    AdvancePayRolloverAction.__table__.drop(bind=engine)
    services = make_services()

    result = services.rollovers.submit(RolloverRequest("1001", 3))

    assert result.success is False
    assert result.state is SubmissionState.FAILED
    assert result.failure_kind is FailureKind.PERSISTENCE
    assert result.exception_type is ExceptionType.BUSINESS
    assert result.error.type == "PersistenceError"
    assert "Unable to write rollover request" in result.reason

    AdvancePayRolloverAction.__table__.create(bind=engine)


def test_concurrent_submissions_never_cross_deliver(make_services, add_rollover, count_actions):
    """
    Completions are released together and in reverse order; each waiter must
    still act on its own. Even accounts are logged successfully, odd accounts
    fail, so a crossed delivery shows up as the wrong outcome.
    """
    accounts = list(range(2001, 2009))
    for acct in accounts:
        add_rollover(acct=acct, sfx=1, qualify=1, resp_code=f"R{acct}")

    services = make_services(subscribe_logging_handler=False)
    received = []
    lock = threading.Lock()

    def release_all_in_reverse(event):
        with lock:
            received.append(event)
            if len(received) < len(accounts):
                return
            batch = list(reversed(received))
        for pending in batch:
            if int(pending.request.member_account_number) % 2 == 0:
                services.bus.publish(RolloverLoggingCompletedEvent.succeeded(pending.correlation_id))
            else:
                services.bus.publish(
                    RolloverLoggingCompletedEvent.failed(pending.correlation_id, RuntimeError(f"log {pending.request.member_account_number}"))
                )

    services.bus.subscribe(RolloverRequestedEvent, release_all_in_reverse)

    with ThreadPoolExecutor(max_workers=len(accounts)) as pool:
        futures = {acct: pool.submit(services.rollovers.submit, RolloverRequest(str(acct), 1)) for acct in accounts}
        results = {acct: future.result(timeout=30) for acct, future in futures.items()}

    assert len({r.correlation_id for r in results.values()}) == len(accounts)
    for acct, result in results.items():
        if acct % 2 == 0:
            assert result.success is True, acct
            assert result.state is SubmissionState.COMMITTED
        else:
            assert result.success is False, acct
            assert result.reason == UNABLE_TO_LOG_MESSAGE
            assert result.error.message == f"log {acct}"

    actions = count_actions()
    assert sorted((a.acct, a.resp_code) for a in actions) == [
        (acct, f"R{acct}") for acct in accounts if acct % 2 == 0
    ]
    assert services.completions.pending_count() == 0


def test_read_rollovers_delegates_to_eligibility(make_services, add_rollover):
    add_rollover(acct=1001, sfx=3, qualify=1)
    add_rollover(acct=1001, sfx=4, qualify=0, note="Other")
    services = make_services()

    assert [r.loan_suffix for r in services.rollovers.read_rollovers("1001")] == [3]


def test_zero_completion_timeout_is_honored(make_services, add_rollover, count_actions):
    add_rollover(acct=1001, sfx=3, qualify=1)
    services = make_services(subscribe_logging_handler=False, rollover_completion_timeout_seconds=0.0)

    assert services.rollovers.completion_timeout == 0.0

    result = services.rollovers.submit(RolloverRequest("1001", 3))

    assert result.state is SubmissionState.TIMED_OUT
    assert count_actions() == []


def test_publish_failure_releases_pending_completion(make_services, add_rollover, count_actions, monkeypatch):
    add_rollover(acct=1001, sfx=3, qualify=1)
    services = make_services()

    def broken_publish(event):
        raise RuntimeError("bus unavailable")

    monkeypatch.setattr(services.bus, "publish", broken_publish)

    with pytest.raises(RuntimeError, match="bus unavailable"):
        services.rollovers.submit(RolloverRequest("1001", 3))

    assert services.completions.pending_count() == 0
    assert count_actions() == []
