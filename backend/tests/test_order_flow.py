"""Order status workflow and tracking progress."""

import pytest

from app.models.order import OrderStatus as S, OrderType
from app.services.order_flow import (
    can_transition,
    display_status,
    progress_percent,
    steps_for,
    tracking_steps,
)


@pytest.mark.parametrize(
    "order_type, current, new, allowed",
    [
        (OrderType.DELIVERY, S.PENDING, S.CONFIRMED, True),
        (OrderType.DELIVERY, S.PENDING, S.PREPARING, False),
        (OrderType.DELIVERY, S.READY, S.OUT_FOR_DELIVERY, True),
        (OrderType.DELIVERY, S.READY, S.AWAITING_DRIVER, True),
        (OrderType.DELIVERY, S.READY, S.DELIVERED, False),
        (OrderType.DELIVERY, S.OUT_FOR_DELIVERY, S.DELIVERED, True),
        (OrderType.TABLE, S.READY, S.DELIVERED, True),
        (OrderType.TABLE, S.READY, S.OUT_FOR_DELIVERY, False),
        (OrderType.PICKUP, S.READY, S.DELIVERED, True),
        (OrderType.DELIVERY, S.PREPARING, S.CANCELLED, True),
        (OrderType.DELIVERY, S.DELIVERED, S.CANCELLED, False),
        (OrderType.DELIVERY, S.CANCELLED, S.PENDING, False),
        (OrderType.DELIVERY, S.CONFIRMED, S.CONFIRMED, False),
    ],
)
def test_can_transition(order_type, current, new, allowed):
    assert can_transition(order_type, current, new) is allowed


def test_steps_by_order_type():
    assert S.OUT_FOR_DELIVERY in steps_for(OrderType.DELIVERY)
    assert S.OUT_FOR_DELIVERY not in steps_for(OrderType.TABLE)


def test_display_status_hides_awaiting_driver():
    assert display_status(S.AWAITING_DRIVER) == S.READY
    assert display_status(S.PREPARING) == S.PREPARING


def test_tracking_steps_marks_progress():
    steps = tracking_steps(OrderType.DELIVERY, S.PREPARING)
    completed = [s["status"] for s in steps if s["completed"]]
    assert completed == [S.PENDING, S.CONFIRMED, S.PREPARING]
    assert [s["status"] for s in steps if s["current"]] == [S.PREPARING]


def test_table_labels():
    steps = tracking_steps(OrderType.TABLE, S.DELIVERED)
    assert steps[-1]["label"] == "Servido"
    assert all(s["completed"] for s in steps)


def test_cancelled_has_no_current_step():
    steps = tracking_steps(OrderType.DELIVERY, S.CANCELLED)
    assert not any(s["current"] or s["completed"] for s in steps)
    assert progress_percent(OrderType.DELIVERY, S.CANCELLED) == 0


def test_progress_percent():
    assert progress_percent(OrderType.DELIVERY, S.PENDING) == 0
    assert progress_percent(OrderType.DELIVERY, S.DELIVERED) == 100
    assert progress_percent(OrderType.TABLE, S.PREPARING) == 50
