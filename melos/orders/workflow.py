"""
Authenticated order workflow.

Every call starts unauthenticated and must present a bearer token:

    Unauthenticated -> TokenVerified -> (history only) OwnershipChecked -> Completed

The owner of a new order is always the user id inside the verified
token. Identity fields a client puts in the payload are never read.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..auth.service import CredentialStore
from ..auth.tokens import TokenService
from ..utils.exceptions import Forbidden, InternalError, InvalidToken, StorageError, Unauthorized, ValidationError
from ..utils.logger import get_logger
from .models import OrderRecord
from .store import OrderStore

logger = get_logger(__name__)


class OrderWorkflow:
    def __init__(self, tokens: TokenService, orders: OrderStore, credentials: CredentialStore):
        self.tokens = tokens
        self.orders = orders
        self.credentials = credentials

    def authenticate(self, token: Optional[str]) -> str:
        """Return the user id behind a bearer token, else raise Unauthorized."""
        if not token:
            raise Unauthorized("Access denied. No token provided.")
        try:
            return self.tokens.verify(token)
        except InvalidToken:
            raise Unauthorized("Invalid or expired token")

    def create_order(
        self,
        token: Optional[str],
        items: Optional[Sequence[Mapping[str, Any]]],
        customer_info: Optional[Mapping[str, Any]],
        total_amount: Any,
    ) -> Dict[str, str]:
        user_id = self.authenticate(token)

        try:
            owner = self.credentials.get_by_id(user_id)
        except StorageError as e:
            logger.error("Loading order owner failed", user_id=user_id, error=str(e))
            raise InternalError("Error saving the order")
        if owner is None:
            logger.warning("Order rejected", reason="unknown_owner", user_id=user_id)
            raise Unauthorized("Invalid or expired token")

        missing = []
        if not items or not isinstance(items, (list, tuple)):
            missing.append("items must be a non-empty list")
        if not customer_info:
            missing.append("customerInfo is required")
        if total_amount is None:
            missing.append("totalAmount is required")
        if missing:
            raise ValidationError("Missing required order data", missing)

        try:
            order_id = self.orders.create(user_id, items, customer_info, total_amount)
        except StorageError as e:
            logger.error("Saving order failed", user_id=user_id, error=str(e))
            raise InternalError("Error saving the order")

        return {"order_id": order_id}

    def get_history(self, token: Optional[str], requested_user_id: str) -> List[OrderRecord]:
        user_id = self.authenticate(token)

        if requested_user_id != user_id:
            logger.warning(
                "Order history access denied",
                user_id=user_id,
                requested_user_id=requested_user_id,
            )
            raise Forbidden("Forbidden. You cannot access other users' order history.")

        try:
            return self.orders.list_by_owner(user_id)
        except StorageError as e:
            logger.error("Loading order history failed", user_id=user_id, error=str(e))
            raise InternalError("Internal server error while loading order history")
