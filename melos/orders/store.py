"""
Order store.

Orders live in <data_dir>/orders.json. Each create is one record append
under the store lock; orders are never deleted.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError as PydanticValidationError

from ..core.locks import LOCK_TIMEOUT_SECONDS, acquire_lock, lock_key_store
from ..core.storage import load_collection, save_collection
from ..utils.exceptions import StorageError, ValidationError, describe_errors
from ..utils.logger import get_logger
from .models import CustomerInfo, OrderItem, OrderRecord, OrderStatus, utcnow

logger = get_logger(__name__)

ORDERS_FILENAME = "orders.json"


class OrderStore:
    """JSON-backed order store."""

    def __init__(self, data_dir: Path, lock_timeout_seconds: float = LOCK_TIMEOUT_SECONDS):
        self.data_dir = Path(data_dir)
        self.orders_path = self.data_dir / ORDERS_FILENAME
        self.locks_dir = self.data_dir / "locks"
        self.lock_timeout_seconds = lock_timeout_seconds

    def _load(self) -> List[OrderRecord]:
        try:
            return [OrderRecord(**item) for item in load_collection(self.orders_path, "orders")]
        except PydanticValidationError as e:
            raise StorageError(f"Corrupt order record in {self.orders_path}: {e}")

    def _save(self, orders: List[OrderRecord]) -> None:
        save_collection(self.orders_path, "orders", [o.to_public() for o in orders])

    def _lock(self):
        return acquire_lock(self.locks_dir, lock_key_store("orders"), self.lock_timeout_seconds)

    def create(
        self,
        owner_id: str,
        items: Sequence[Union[OrderItem, Mapping[str, Any]]],
        customer_info: Union[CustomerInfo, Mapping[str, Any]],
        total_amount: Any,
    ) -> str:
        """Validate and persist a pending order; return its id."""
        try:
            order = OrderRecord(
                user_id=owner_id,
                items=items,
                customer_info=customer_info,
                total_amount=total_amount,
            )
        except PydanticValidationError as e:
            errors = describe_errors(e.errors())
            raise ValidationError("Order validation failed: " + ", ".join(errors), errors)

        with self._lock():
            orders = self._load()
            orders.append(order)
            self._save(orders)

        logger.info(
            "Order created",
            order_id=order.id,
            user_id=owner_id,
            items=len(order.items),
            total_amount=order.total_amount,
        )
        return order.id

    def list_by_owner(self, owner_id: str) -> List[OrderRecord]:
        """Orders for one user, newest first. Empty list if there are none."""
        # reversed() keeps later inserts first when timestamps tie
        owned = [o for o in reversed(self._load()) if o.user_id == owner_id]
        return sorted(owned, key=lambda o: o.created_at, reverse=True)

    def get(self, order_id: str) -> Optional[OrderRecord]:
        return next((o for o in self._load() if o.id == order_id), None)

    def update_status(self, order_id: str, status: Union[OrderStatus, str]) -> OrderRecord:
        """Advance an order's status (administrative tooling)."""
        try:
            new_status = OrderStatus(status)
        except ValueError:
            allowed = ", ".join(s.value for s in OrderStatus)
            raise ValidationError(f"Unknown status '{status}'", [f"status must be one of: {allowed}"])

        with self._lock():
            orders = self._load()
            for i, o in enumerate(orders):
                if o.id == order_id:
                    orders[i] = o.model_copy(update={"status": new_status, "updated_at": utcnow()})
                    break
            else:
                raise ValidationError("Unknown order", [f"order {order_id} does not exist"])
            self._save(orders)

        logger.info("Order status updated", order_id=order_id, status=new_status.value)
        return orders[i]
