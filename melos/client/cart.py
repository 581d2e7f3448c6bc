"""
Shopping cart kept on the client.

The cart is an ordered list of lines persisted to local storage under
"meloPizzaCart" after every mutation. Adding an item that matches an
existing line by name and size bumps that line's quantity instead of
appending a new one.
"""

from __future__ import annotations

import json
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from ..utils.exceptions import ValidationError, describe_errors
from ..utils.logger import get_logger
from .storage import LocalStorage

logger = get_logger(__name__)

CART_KEY = "meloPizzaCart"


class CartItem(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    name: str = Field(..., min_length=1)
    size: Optional[str] = None
    price: float = Field(..., ge=0)
    quantity: int = Field(1, ge=1)

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity


class Cart:
    def __init__(self, storage: LocalStorage):
        self.storage = storage
        self._items: List[CartItem] = self._load()

    def _load(self) -> List[CartItem]:
        raw = self.storage.get_item(CART_KEY)
        if not raw:
            return []
        try:
            return [CartItem(**item) for item in json.loads(raw)]
        except (json.JSONDecodeError, TypeError, PydanticValidationError) as e:
            logger.warning("Discarding unreadable cart", error=str(e))
            return []

    def _save(self) -> None:
        self.storage.set_item(CART_KEY, json.dumps([item.model_dump() for item in self._items]))

    def _check_index(self, index: int) -> None:
        if not isinstance(index, int) or index < 0 or index >= len(self._items):
            raise ValidationError(f"Invalid cart index: {index}", [f"index must be between 0 and {len(self._items) - 1}"])

    @property
    def items(self) -> List[CartItem]:
        return list(self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    def add_item(self, name: str, size: Optional[str], price: float) -> CartItem:
        for i, item in enumerate(self._items):
            if item.name == name and item.size == size:
                self._items[i] = item.model_copy(update={"quantity": item.quantity + 1})
                self._save()
                return self._items[i]

        try:
            item = CartItem(name=name, size=size, price=price)
        except PydanticValidationError as e:
            errors = describe_errors(e.errors())
            raise ValidationError("Invalid product: " + ", ".join(errors), errors)
        self._items.append(item)
        self._save()
        return item

    def remove_item(self, index: int) -> None:
        self._check_index(index)
        del self._items[index]
        self._save()

    def update_quantity(self, index: int, quantity: int) -> None:
        """Set a line's quantity; 0 removes the line."""
        self._check_index(index)
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            raise ValidationError(f"Invalid quantity: {quantity}", ["quantity must be a non-negative integer"])
        if quantity == 0:
            self.remove_item(index)
            return
        self._items[index] = self._items[index].model_copy(update={"quantity": quantity})
        self._save()

    def count(self) -> int:
        """Total number of units across all lines."""
        return sum(item.quantity for item in self._items)

    def total(self) -> float:
        return sum(item.subtotal for item in self._items)

    def clear(self) -> None:
        self._items = []
        self._save()
