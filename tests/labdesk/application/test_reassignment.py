"""Application tests for reassigning a preparation to another operator."""

import json

import pytest
from protean import current_domain

from labdesk.assignment.reassignment import ReassignPreparation
from labdesk.errors import Forbidden, InvalidState, NotFound, Unprocessable
from labdesk.order.update import UpdateOrder
from labdesk.preparation.opening import OpenPreparation
from labdesk.preparation.preparation import AssignmentMode, OrderPreparation, PreparationStatus
from labdesk.preparation.progress import RecordPreparationProgress


def _actor_fields(actor):
    return {
        "actor_id": actor.user_id,
        "actor_role": actor.role,
        "actor_email": actor.email,
        "actor_name": actor.name,
    }


@pytest.fixture()
def opened_order_id(staff, place_order, admin, operator):
    order_id = place_order(line_count=2)
    current_domain.process(
        UpdateOrder(order_id=order_id, status="confirmado", **_actor_fields(admin)), asynchronous=False
    )
    current_domain.process(OpenPreparation(order_id=order_id, **_actor_fields(operator)), asynchronous=False)
    return order_id


def _reassign(order_id, actor, **fields):
    return current_domain.process(
        ReassignPreparation(order_id=order_id, **fields, **_actor_fields(actor)), asynchronous=False
    )


def _prep(order_id):
    return current_domain.repository_for(OrderPreparation).get(order_id)


class TestManualReassignment:
    def test_reassign_to_named_operator(self, opened_order_id, admin):
        assert _reassign(opened_order_id, admin, assign_to="bodega-2") == "bodega-2"
        prep = _prep(opened_order_id)
        assert prep.assigned_to == "bodega-2"
        assert prep.assigned_to_name == "Beto Bodega"
        assert prep.assigned_by == AssignmentMode.MANUAL.value
        assert prep.reassigned_from == "bodega-1"
        assert prep.reassigned_by == "admin-1"

    def test_in_progress_resets_to_assigned(self, opened_order_id, admin, operator):
        prep = _prep(opened_order_id)
        items = [
            {"product_id": prep.items[0].product_id, "quantity_prepared": 1, "is_prepared": True},
            {"product_id": prep.items[1].product_id, "quantity_prepared": 0, "is_prepared": False},
        ]
        current_domain.process(
            RecordPreparationProgress(order_id=opened_order_id, items=json.dumps(items), **_actor_fields(operator)),
            asynchronous=False,
        )
        _reassign(opened_order_id, admin, assign_to="bodega-2")
        assert _prep(opened_order_id).status == PreparationStatus.ASSIGNED.value

    def test_unknown_target(self, opened_order_id, admin):
        with pytest.raises(NotFound):
            _reassign(opened_order_id, admin, assign_to="ghost")

    def test_target_must_be_warehouse_staff(self, opened_order_id, admin):
        with pytest.raises(Unprocessable):
            _reassign(opened_order_id, admin, assign_to="rep-1")

    def test_target_or_auto_is_required(self, opened_order_id, admin):
        with pytest.raises(Unprocessable):
            _reassign(opened_order_id, admin)

    def test_customer_cannot_reassign(self, opened_order_id, customer):
        with pytest.raises(Forbidden):
            _reassign(opened_order_id, customer, assign_to="bodega-2")


class TestAutoReassignment:
    def test_auto_picks_least_loaded(self, opened_order_id, admin):
        # bodega-1 holds the opened preparation, so bodega-2 is idle
        assert _reassign(opened_order_id, admin, auto_assign=True) == "bodega-2"
        assert _prep(opened_order_id).assigned_by == AssignmentMode.AUTO.value


class TestReassignmentGuards:
    def test_order_without_preparation(self, staff, place_order, admin):
        order_id = place_order()
        with pytest.raises(InvalidState):
            _reassign(order_id, admin, assign_to="bodega-2")

    def test_missing_order(self, staff, admin):
        with pytest.raises(NotFound):
            _reassign("no-such-order", admin, assign_to="bodega-2")
