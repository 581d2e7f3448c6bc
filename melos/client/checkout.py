"""
Checkout.

Two ways to place an order, chosen on the client before any backend call:
- logged in: POST the cart to /api/orders with the bearer token
- anonymous: compose a prefilled WhatsApp message for the pizzeria

The backend only ever sees authenticated order requests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union
from urllib.parse import quote

from pydantic import ValidationError as PydanticValidationError

from ..orders.models import CustomerInfo
from ..utils.exceptions import Unauthorized, ValidationError, describe_errors
from ..utils.logger import get_logger
from .api import ApiClient
from .cart import Cart
from .session import ClientSession

logger = get_logger(__name__)

WHATSAPP_SEND_URL = "https://api.whatsapp.com/send"
# Bank transfers need a payment receipt before the order is confirmed
PROOF_REQUIRED_METHODS = {"nequi", "bancolombia", "daviplata"}
# characters JavaScript's encodeURIComponent leaves unescaped, beyond quote()'s own
URI_COMPONENT_SAFE = "!*'()"


def format_cop(amount: float) -> str:
    """Format an amount the way es-CO locales do: 45.000 or 1.234,5"""
    if float(amount).is_integer():
        return f"{int(amount):,}".replace(",", ".")
    whole, frac = f"{amount:,.2f}".split(".")
    whole = whole.replace(",", ".")
    frac = frac.rstrip("0")
    return f"{whole},{frac}" if frac else whole


def requires_payment_proof(payment_method: str) -> bool:
    return payment_method.strip().lower() in PROOF_REQUIRED_METHODS


def compose_whatsapp_message(cart: Cart, info: CustomerInfo) -> str:
    lines = ["¡Hola! Tengo un nuevo pedido:", "", "--- Pedido ---"]
    for item in cart.items:
        size = f" ({item.size})" if item.size else ""
        lines.append(f"{item.quantity}x {item.name}{size} ${format_cop(item.subtotal)}")
    lines.append(f"*Total: ${format_cop(cart.total())}*")
    lines.append("")

    method = info.payment_method
    lines.append("--- Datos del Cliente ---")
    lines.append(f"Forma de Pago: {method[:1].upper()}{method[1:]}")
    lines.append(f"Dirección de Envío: {info.shipping_address}")
    lines.append(f"Barrio: {info.shipping_neighborhood or ''}")
    lines.append(f"Celular de Contacto: {info.contact_phone}")
    lines.append("")

    message = "\n".join(lines) + "\n"
    if requires_payment_proof(method):
        message += (
            "Por favor pregunta por el costo del domicilio antes de realizar el pago "
            "y envía el comprobante de pago para confirmar tu pedido.\n\n"
        )
    return message


def whatsapp_url(message: str, phone: str) -> str:
    return f"{WHATSAPP_SEND_URL}?phone={phone}&text={quote(message, safe=URI_COMPONENT_SAFE)}"


@dataclass(frozen=True)
class CheckoutResult:
    channel: str  # "api" or "whatsapp"
    order_id: Optional[str] = None
    url: Optional[str] = None


def checkout(
    cart: Cart,
    customer_info: Union[CustomerInfo, Mapping[str, Any]],
    session: ClientSession,
    api: Optional[ApiClient],
    whatsapp_phone: str,
) -> CheckoutResult:
    """
    Place the cart as an order. The cart is emptied only on success.

    A rejected token logs the session out and re-raises Unauthorized so the
    caller can ask the user to log in again.
    """
    if cart.is_empty:
        raise ValidationError("Your cart is empty", ["add products before checking out"])
    try:
        info = customer_info if isinstance(customer_info, CustomerInfo) else CustomerInfo(**customer_info)
    except PydanticValidationError as e:
        errors = describe_errors(e.errors())
        raise ValidationError("Checkout form is incomplete: " + ", ".join(errors), errors)

    if session.is_authenticated and api is not None:
        try:
            response = api.create_order(
                session.token,
                [item.model_dump() for item in cart.items],
                info.model_dump(by_alias=True),
                cart.total(),
            )
        except Unauthorized:
            logger.info("Stored token rejected, logging out")
            session.logout()
            raise
        result = CheckoutResult(channel="api", order_id=response.get("orderId"))
    else:
        message = compose_whatsapp_message(cart, info)
        result = CheckoutResult(channel="whatsapp", url=whatsapp_url(message, whatsapp_phone))

    cart.clear()
    logger.info("Checkout completed", channel=result.channel, order_id=result.order_id)
    return result
