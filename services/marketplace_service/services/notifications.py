"""Room-based real-time notifications over WebSockets.

A connection only receives events for rooms it explicitly joined. Delivery
is best-effort: a failed send is logged and the socket dropped; nothing is
queued, retried or replayed.
"""

import uuid
from collections import defaultdict
from typing import Any, Protocol

from libs.common.logging import get_logger

logger = get_logger(__name__)

ORDER_STATUS_UPDATE = "orderStatusUpdate"
NEW_ORDER_NOTIFICATION = "newOrderNotification"


class Connection(Protocol):
    async def send_json(self, data: Any) -> None: ...


def customer_room(user_id: uuid.UUID | str) -> str:
    return f"customer_user_{user_id}"


def vendor_room(vendor_user_id: uuid.UUID | str) -> str:
    return f"vendor_user_{vendor_user_id}"


class ConnectionManager:
    """Tracks which live connections joined which rooms."""

    def __init__(self) -> None:
        self._rooms: dict[str, set[Connection]] = defaultdict(set)

    def join(self, connection: Connection, room: str) -> None:
        self._rooms[room].add(connection)
        logger.info("Connection joined room %s", room)

    def leave_all(self, connection: Connection) -> None:
        for room in list(self._rooms):
            members = self._rooms[room]
            members.discard(connection)
            if not members:
                del self._rooms[room]

    def members(self, room: str) -> set[Connection]:
        return set(self._rooms.get(room, ()))

    async def emit(self, room: str, event: str, data: dict[str, Any]) -> int:
        """Send ``event`` to every connection in ``room``. Returns deliveries."""
        delivered = 0
        for connection in self.members(room):
            try:
                await connection.send_json({"event": event, "data": data})
                delivered += 1
            except Exception:
                logger.exception("Dropping connection after failed send to %s", room)
                self.leave_all(connection)
        return delivered


manager = ConnectionManager()


def get_connection_manager() -> ConnectionManager:
    """FastAPI dependency returning the process-wide connection manager."""
    return manager


async def notify_new_order(
    notifier: ConnectionManager,
    *,
    order_id: uuid.UUID,
    vendor_user_ids: list[uuid.UUID],
    items_count: int,
) -> None:
    """Tell each vendor represented in an order that it was placed."""
    for vendor_user_id in vendor_user_ids:
        try:
            await notifier.emit(
                vendor_room(vendor_user_id),
                NEW_ORDER_NOTIFICATION,
                {
                    "orderId": str(order_id),
                    "message": "You have a new order!",
                    "itemsCount": items_count,
                },
            )
        except Exception:
            logger.exception(
                "New-order notification failed for vendor user %s (order %s)",
                vendor_user_id,
                order_id,
            )


async def notify_order_status(
    notifier: ConnectionManager,
    *,
    order_id: uuid.UUID,
    customer_id: uuid.UUID,
    new_status: str,
) -> None:
    """Tell the owning customer that their order changed status."""
    try:
        await notifier.emit(
            customer_room(customer_id),
            ORDER_STATUS_UPDATE,
            {
                "orderId": str(order_id),
                "newStatus": new_status,
                "message": f"Your order {order_id} is now {new_status}.",
            },
        )
    except Exception:
        logger.exception("Status notification failed for order %s", order_id)
