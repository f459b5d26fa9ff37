"""Payment status reconciliation against the ledger."""

from datetime import datetime, timezone

import pytest

from conference_checkout.errors import InvalidReturnUrlError
from conference_checkout.models.payment import OrderStatus, PaymentRecord, PlanProgress
from conference_checkout.models.promo import ReservationState
from conference_checkout.reconciler import PaymentStatusReconciler, map_status, parse_return_url

EMAIL = "attendee@example.com"


def _row(status, plan_id="3", n=1):
    return {"orderNumber": f"o-{plan_id}-{n}-{status}", "mdOrder": f"md-{plan_id}-{n}", "status": status,
            "planId": plan_id, "email": EMAIL, "paymentNumber": n}


@pytest.mark.parametrize("raw,expected", [
    ("1", OrderStatus.SUCCESS),
    ("DEPOSITED", OrderStatus.SUCCESS),
    (" deposited ", OrderStatus.SUCCESS),
    ("0", OrderStatus.FAILED),
    ("declined", OrderStatus.FAILED),
    ("-1", OrderStatus.PENDING),
    ("", OrderStatus.PENDING),
    (None, OrderStatus.PENDING),
    ("REFUNDED", OrderStatus.PENDING),
])
def test_map_status(raw, expected):
    assert map_status(raw) == expected


def test_parse_return_url():
    params = parse_return_url("https://conference.test/dashboard?orderId=md-1&status=0&errorMessage=Card+declined")
    assert params == {"order_id": "md-1", "status": "0", "error_message": "Card declined"}
    assert parse_return_url("https://conference.test/dashboard?mdOrder=md-2")["order_id"] == "md-2"
    assert parse_return_url("https://conference.test/dashboard")["order_id"] is None


def test_progress_from_records():
    records = [PaymentRecord.model_validate(r) for r in (_row("1", n=1), _row("1", n=2), _row("-1", n=3))]
    assert PaymentStatusReconciler.progress_from_records(records) == PlanProgress(completed=2, total=3)
    assert PaymentStatusReconciler.progress_from_records([]) == PlanProgress(completed=0, total=0)


def test_plan_progress_helpers():
    p = PlanProgress(completed=2, total=3)
    assert p.remaining == 1
    assert not p.is_complete
    assert p.next_payment_number == 3
    assert PlanProgress(completed=3, total=3).is_complete
    assert not PlanProgress().is_complete


@pytest.mark.asyncio
async def test_resolve_success_after_settlement(client, backend, identity):
    result = await client.submitter.submit(identity, client.plans.get(1), "3")
    outcome = await client.reconciler.resolve_order(result.order_id)
    assert outcome.status == OrderStatus.PENDING
    assert outcome.message == "Payment is still processing"

    backend.settle(result.order_id, "DEPOSITED")
    outcome = await client.reconciler.resolve_order(result.order_id)
    assert outcome.status == OrderStatus.SUCCESS
    assert outcome.record.order_number == result.intent.order_number
    assert outcome.record.amount == 50000
    assert outcome.message == "Payment successful"


@pytest.mark.asyncio
async def test_resolve_failed_carries_error_message(client, backend, identity):
    result = await client.submitter.submit(identity, client.plans.get(1), "3")
    backend.settle(result.order_id, "0")
    outcome = await client.reconciler.resolve_return_url(
        f"https://conference.test/dashboard?orderId={result.order_id}&errorMessage=Insufficient%20funds"
    )
    assert outcome.status == OrderStatus.FAILED
    assert outcome.message == "Payment failed: Insufficient funds"


@pytest.mark.asyncio
async def test_missing_record_is_not_a_failure(client):
    outcome = await client.reconciler.resolve_order("md-unknown")
    assert outcome.status == OrderStatus.NOT_FOUND
    assert outcome.record is None
    assert outcome.message == "Payment is still processing"


@pytest.mark.asyncio
@pytest.mark.parametrize("query,status", [
    ("status=success", OrderStatus.SUCCESS),
    ("status=failed&errorMessage=Card+declined", OrderStatus.FAILED),
    ("status=processing", OrderStatus.PENDING),
])
async def test_status_only_return_url(client, backend, query, status):
    outcome = await client.reconciler.resolve_return_url(f"https://conference.test/dashboard?{query}")
    assert outcome.status == status
    assert outcome.order_id is None
    assert "GET /api/payment" not in backend.calls


@pytest.mark.asyncio
async def test_failed_status_only_return_carries_error(client):
    outcome = await client.reconciler.resolve_return_url(
        "https://conference.test/dashboard?status=failed&errorMessage=Card+declined"
    )
    assert outcome.message == "Payment failed: Card declined"


@pytest.mark.asyncio
async def test_return_url_without_order_or_status(client):
    with pytest.raises(InvalidReturnUrlError) as exc:
        await client.reconciler.resolve_return_url("https://conference.test/dashboard")
    assert exc.value.code == "invalid_return_url"


@pytest.mark.asyncio
async def test_null_ledger_status_reads_as_pending(client, backend):
    row = {"orderNumber": "o-null", "mdOrder": "md-null", "status": None, "planId": "3", "email": EMAIL}
    backend.ledger["o-null"] = row
    outcome = await client.reconciler.resolve_order("md-null")
    assert outcome.status == OrderStatus.PENDING
    assert outcome.record.status is None

    backend.history = [_row("1", n=1)]
    progress = await client.reconciler.plan_progress(EMAIL)
    assert (progress.completed, progress.total) == (1, 3)


@pytest.mark.asyncio
async def test_plan_progress_from_ledger(client, backend):
    backend.history = [_row("1", n=1), _row("1", n=2), _row("-1", n=3)]
    progress = await client.reconciler.plan_progress(EMAIL)
    assert (progress.completed, progress.total) == (2, 3)


@pytest.mark.asyncio
async def test_subscription_counts_only_its_own_plan(client, backend):
    backend.history = [_row("1", n=1), _row("1", "2", n=1), _row("1", n=2)]
    sub = await client.reconciler.subscription(EMAIL)
    assert sub.plan_id == "3"
    assert sub.required_installments == 3
    assert sub.completed == 2
    assert sub.progress.next_payment_number == 3
    assert len(sub.order_numbers) == 2

    # the plain progress rule counts every successful row
    progress = await client.reconciler.plan_progress(EMAIL)
    assert progress.completed == 3


@pytest.mark.asyncio
async def test_no_subscription_without_success(client, backend):
    backend.history = [_row("0", n=1)]
    assert await client.reconciler.subscription(EMAIL) is None


@pytest.mark.asyncio
async def test_next_due(client, backend):
    backend.next_due["user-1"] = {
        "nextDueDate": "2026-11-18T00:00:00Z", "installmentNumber": 2, "totalInstallments": 3, "remaining": 2,
    }
    due = await client.reconciler.next_due("user-1")
    assert due.next_due_date == datetime(2026, 11, 18, tzinfo=timezone.utc)
    assert due.installment_number == 2
    assert due.remaining == 2
    assert await client.reconciler.next_due("user-2") is None


@pytest.mark.asyncio
async def test_complete_return_consumes_reservation(client, backend, identity):
    flow = client.flow(identity)
    try:
        await flow.select_room("1")
        flow.select_plan(3)
        assert await flow.apply_promo("SAVE10")
        result = await flow.purchase()
        backend.settle(result.order_id, "1")
        rooms_fetched = backend.calls.count("GET /rooms")

        outcome = await flow.complete_return(f"https://conference.test/dashboard?orderId={result.order_id}")
        assert outcome.status == OrderStatus.SUCCESS
        assert flow.reservation.state == ReservationState.CONSUMED
        assert not flow.promo_applied

        await flow.rooms()
        assert backend.calls.count("GET /rooms") == rooms_fetched + 1
        progress = await flow.progress()
        assert (progress.completed, progress.total) == (1, 3)
    finally:
        flow.close()


@pytest.mark.asyncio
async def test_failed_return_keeps_reservation(client, backend, identity):
    flow = client.flow(identity)
    try:
        await flow.select_room("1")
        flow.select_plan(1)
        assert await flow.apply_promo("SAVE10")
        result = await flow.purchase()
        backend.settle(result.order_id, "0")
        outcome = await flow.complete_return(f"https://conference.test/dashboard?mdOrder={result.order_id}")
        assert outcome.status == OrderStatus.FAILED
        assert flow.reservation.state == ReservationState.ACTIVE
        assert flow.promo_applied
    finally:
        flow.close()


@pytest.mark.asyncio
async def test_complete_return_from_status_only_redirect(client, backend, identity):
    flow = client.flow(identity)
    try:
        await flow.select_room("1")
        flow.select_plan(1)
        assert await flow.apply_promo("SAVE10")
        await flow.purchase()

        outcome = await flow.complete_return("https://conference.test/dashboard?status=failed&errorMessage=Card+declined")
        assert outcome.status == OrderStatus.FAILED
        assert flow.promo_applied

        outcome = await flow.complete_return("https://conference.test/dashboard?status=success")
        assert outcome.status == OrderStatus.SUCCESS
        assert flow.reservation.state == ReservationState.CONSUMED
        assert not flow.promo_applied
    finally:
        flow.close()
