"""Unit tests for room-based notification delivery."""

import uuid

import pytest
from services.marketplace_service.services.notifications import (
    NEW_ORDER_NOTIFICATION,
    ORDER_STATUS_UPDATE,
    ConnectionManager,
    customer_room,
    notify_new_order,
    notify_order_status,
    vendor_room,
)
from tests.conftest import RecordingConnection


# ---------------------------------------------------------------------------
# ConnectionManager
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_emit_reaches_only_joined_room(notifier):
    alice = RecordingConnection()
    bob = RecordingConnection()
    alice_id, bob_id = uuid.uuid4(), uuid.uuid4()
    notifier.join(alice, customer_room(alice_id))
    notifier.join(bob, customer_room(bob_id))

    delivered = await notifier.emit(customer_room(alice_id), "ping", {"n": 1})

    assert delivered == 1
    assert alice.sent == [{"event": "ping", "data": {"n": 1}}]
    assert bob.sent == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_emit_to_empty_room_is_noop(notifier):
    assert await notifier.emit(vendor_room(uuid.uuid4()), "ping", {}) == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_failed_send_drops_connection(notifier):
    room = customer_room(uuid.uuid4())
    broken = RecordingConnection(fail=True)
    healthy = RecordingConnection()
    notifier.join(broken, room)
    notifier.join(healthy, room)

    delivered = await notifier.emit(room, "ping", {})

    assert delivered == 1
    assert notifier.members(room) == {healthy}


@pytest.mark.unit
def test_leave_all_removes_every_membership(notifier):
    conn = RecordingConnection()
    user_id = uuid.uuid4()
    notifier.join(conn, customer_room(user_id))
    notifier.join(conn, vendor_room(user_id))

    notifier.leave_all(conn)

    assert notifier.members(customer_room(user_id)) == set()
    assert notifier.members(vendor_room(user_id)) == set()


@pytest.mark.unit
def test_room_names():
    user_id = uuid.UUID("11111111-2222-3333-4444-555555555555")
    assert customer_room(user_id) == f"customer_user_{user_id}"
    assert vendor_room(str(user_id)) == f"vendor_user_{user_id}"


# ---------------------------------------------------------------------------
# Event payloads
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_status_update_goes_to_owner_only(notifier):
    owner_id, other_id, order_id = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    owner = RecordingConnection()
    other = RecordingConnection()
    notifier.join(owner, customer_room(owner_id))
    notifier.join(other, customer_room(other_id))

    await notify_order_status(
        notifier, order_id=order_id, customer_id=owner_id, new_status="SHIPPED"
    )

    assert owner.events(ORDER_STATUS_UPDATE) == [
        {
            "orderId": str(order_id),
            "newStatus": "SHIPPED",
            "message": f"Your order {order_id} is now SHIPPED.",
        }
    ]
    assert other.sent == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_new_order_goes_to_each_vendor(notifier):
    order_id = uuid.uuid4()
    vendor_ids = [uuid.uuid4(), uuid.uuid4()]
    conns = [RecordingConnection(), RecordingConnection()]
    for vendor_id, conn in zip(vendor_ids, conns):
        notifier.join(conn, vendor_room(vendor_id))

    await notify_new_order(
        notifier, order_id=order_id, vendor_user_ids=vendor_ids, items_count=3
    )

    for conn in conns:
        assert conn.events(NEW_ORDER_NOTIFICATION) == [
            {"orderId": str(order_id), "message": "You have a new order!", "itemsCount": 3}
        ]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_notifier_errors_are_swallowed():
    """A broken notifier never surfaces to the caller."""

    class ExplodingManager(ConnectionManager):
        async def emit(self, room, event, data):
            raise RuntimeError("transport down")

    await notify_order_status(
        ExplodingManager(),
        order_id=uuid.uuid4(),
        customer_id=uuid.uuid4(),
        new_status="PROCESSING",
    )
    await notify_new_order(
        ExplodingManager(),
        order_id=uuid.uuid4(),
        vendor_user_ids=[uuid.uuid4()],
        items_count=1,
    )
