"""BDD tests for warehouse preparation progress and dispatch."""

from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, scenarios, then, when

from labdesk.preparation.preparation import OrderPreparation

scenarios("features/preparation_tracking.feature")


def _lines(count):
    return [
        {"product_id": f"prod-{n}", "product_name": f"Reagent {n}", "quantity": 1} for n in range(1, count + 1)
    ]


def _report(prepared, total):
    return [
        {"product_id": f"prod-{n}", "quantity_prepared": 1 if n <= prepared else 0, "is_prepared": n <= prepared}
        for n in range(1, total + 1)
    ]


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse('an order with {lines:d} lines assigned to "{operator_id}"'),
    target_fixture="prep",
)
def assigned_preparation(lines, operator_id):
    prep = OrderPreparation.create(
        order_id="order-1",
        order_number="ORD-2410-0001",
        items_data=_lines(lines),
        assigned_to=operator_id,
    )
    prep._events.clear()
    return prep


@given("every item was prepared", target_fixture="prep")
def fully_prepared(prep):
    prep.record_progress(_report(prep.total_items, prep.total_items))
    prep._events.clear()
    return prep


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse("{prepared:d} of {total:d} items are reported prepared"))
def report_progress(prep, error, prepared, total):
    try:
        prep.record_progress(_report(prepared, total))
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.cfparse('the order is dispatched by "{operator_id}"'))
def dispatch(prep, error, operator_id):
    try:
        prep.dispatch(operator_id, carrier="Starken", tracking_number="STK-1")
    except ValidationError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the preparation status is "{status}"'))
def preparation_status_is(prep, status):
    assert prep.status == status


@then(parsers.cfparse("the preparation progress is {progress:d}"))
def preparation_progress_is(prep, progress):
    assert prep.progress == progress


@then("the preparation has a start time")
def has_start_time(prep):
    assert prep.started_at is not None


@then("the preparation has no completion time")
def has_no_completion_time(prep):
    assert prep.completed_at is None


@then(parsers.cfparse("a {event_type} preparation event is raised"))
def preparation_event_raised(prep, event_type):
    assert any(
        type(e).__name__ == event_type for e in prep._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in prep._events]}"
