"""
Domain events system

Domain events are published after a transaction commits, so subscribers
(kitchen display, notifications, reports) only ever see committed state.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import uuid
import structlog

logger = structlog.get_logger(__name__)


class DomainEvent:
    """Base class for domain events"""

    def __init__(self, event_id: uuid.UUID = None):
        self.event_id = event_id or uuid.uuid4()
        self.occurred_at = datetime.utcnow()

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary"""
        return {
            "event_id": str(self.event_id),
            "occurred_at": self.occurred_at.isoformat(),
            "event_type": self.__class__.__name__
        }


class OrderPlaced(DomainEvent):
    """Event fired when a checkout commits"""

    def __init__(
        self,
        order_id: uuid.UUID,
        order_number: str,
        restaurant_id: uuid.UUID,
        table_id: Optional[uuid.UUID],
        total: float,
        event_id: uuid.UUID = None
    ):
        super().__init__(event_id)
        self.order_id = order_id
        self.order_number = order_number
        self.restaurant_id = restaurant_id
        self.table_id = table_id
        self.total = total

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "order_id": str(self.order_id),
            "order_number": self.order_number,
            "restaurant_id": str(self.restaurant_id),
            "table_id": str(self.table_id) if self.table_id else None,
            "total": self.total
        })
        return data


class OrderStatusChanged(DomainEvent):
    """Event fired when front-of-house changes an order's status"""

    def __init__(
        self,
        order_id: uuid.UUID,
        restaurant_id: uuid.UUID,
        previous_status: str,
        status: str,
        event_id: uuid.UUID = None
    ):
        super().__init__(event_id)
        self.order_id = order_id
        self.restaurant_id = restaurant_id
        self.previous_status = previous_status
        self.status = status

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "order_id": str(self.order_id),
            "restaurant_id": str(self.restaurant_id),
            "previous_status": self.previous_status,
            "status": self.status
        })
        return data


class KitchenStatusChanged(DomainEvent):
    """Event fired when the kitchen moves an order along"""

    def __init__(
        self,
        order_id: uuid.UUID,
        restaurant_id: uuid.UUID,
        previous_status: str,
        kitchen_status: str,
        completed_at: Optional[datetime] = None,
        event_id: uuid.UUID = None
    ):
        super().__init__(event_id)
        self.order_id = order_id
        self.restaurant_id = restaurant_id
        self.previous_status = previous_status
        self.kitchen_status = kitchen_status
        self.completed_at = completed_at

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "order_id": str(self.order_id),
            "restaurant_id": str(self.restaurant_id),
            "previous_status": self.previous_status,
            "kitchen_status": self.kitchen_status,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None
        })
        return data


class StockAdjusted(DomainEvent):
    """Event fired after a manual stock adjustment commits"""

    def __init__(
        self,
        product_id: uuid.UUID,
        restaurant_id: uuid.UUID,
        quantity_change: int,
        quantity_after: int,
        stock_status: str,
        event_id: uuid.UUID = None
    ):
        super().__init__(event_id)
        self.product_id = product_id
        self.restaurant_id = restaurant_id
        self.quantity_change = quantity_change
        self.quantity_after = quantity_after
        self.stock_status = stock_status

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "product_id": str(self.product_id),
            "restaurant_id": str(self.restaurant_id),
            "quantity_change": self.quantity_change,
            "quantity_after": self.quantity_after,
            "stock_status": self.stock_status
        })
        return data


class EventBus:
    """Simple in-memory event bus for publishing domain events"""

    def __init__(self):
        self._subscribers: Dict[str, List[Callable]] = {}

    def subscribe(self, event_type: str, handler: Callable):
        """Subscribe to a specific event type"""
        if event_type not in self._subscribers:
            self._subscribers[event_type] = []
        self._subscribers[event_type].append(handler)
        logger.debug(f"Subscribed handler to event type: {event_type}")

    def publish(self, event: DomainEvent):
        """Publish an event to all subscribers

        The transaction has already committed, so a failing subscriber is
        logged and must not turn a successful operation into an error.
        """
        event_type = event.__class__.__name__
        handlers = self._subscribers.get(event_type, [])

        if not handlers:
            logger.debug(f"No subscribers for event type: {event_type}")
            return

        logger.info(f"Publishing event {event_type}: {event.event_id}")

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler for {event_type}: {e}", exc_info=True)


# Global event bus instance
event_bus = EventBus()
