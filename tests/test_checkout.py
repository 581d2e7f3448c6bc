from urllib.parse import parse_qs, urlparse

import pytest

from melos.client.api import ApiClient
from melos.client.cart import Cart
from melos.client.checkout import (
    checkout,
    compose_whatsapp_message,
    format_cop,
    requires_payment_proof,
    whatsapp_url,
)
from melos.client.session import ClientSession
from melos.client.storage import LocalStorage
from melos.orders.models import CustomerInfo
from melos.utils.exceptions import Conflict, Unauthorized, ValidationError

PHONE = "573124674602"


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "browser.json")


@pytest.fixture
def cart(storage):
    cart = Cart(storage)
    cart.add_item("Pizza Hawaiana", "Mediana", 15000)
    cart.add_item("Pizza Hawaiana", "Mediana", 15000)
    cart.add_item("Gaseosa", None, 5000)
    return cart


@pytest.fixture
def session(storage):
    return ClientSession(storage)


@pytest.fixture
def api(http_session):
    return ApiClient(base_url="http://testserver", session=http_session)


@pytest.mark.parametrize(
    "amount,expected",
    [(45000, "45.000"), (0, "0"), (1234567, "1.234.567"), (1234.5, "1.234,5"), (99.25, "99,25")],
)
def test_format_cop(amount, expected):
    assert format_cop(amount) == expected


def test_payment_proof_methods():
    assert requires_payment_proof("Nequi")
    assert requires_payment_proof(" daviplata ")
    assert not requires_payment_proof("efectivo")


def test_whatsapp_message(cart, customer_info):
    message = compose_whatsapp_message(cart, CustomerInfo(**customer_info))
    assert message == (
        "¡Hola! Tengo un nuevo pedido:\n"
        "\n"
        "--- Pedido ---\n"
        "2x Pizza Hawaiana (Mediana) $30.000\n"
        "1x Gaseosa $5.000\n"
        "*Total: $35.000*\n"
        "\n"
        "--- Datos del Cliente ---\n"
        "Forma de Pago: Efectivo\n"
        "Dirección de Envío: Calle 10 # 5-20\n"
        "Barrio: Centro\n"
        "Celular de Contacto: 3001234567\n"
        "\n"
    )


def test_transfer_payment_asks_for_receipt(cart, customer_info):
    info = CustomerInfo(**dict(customer_info, paymentMethod="nequi"))
    message = compose_whatsapp_message(cart, info)
    assert "Forma de Pago: Nequi" in message
    assert "comprobante de pago" in message


def test_whatsapp_url_encodes_message():
    url = whatsapp_url("¡Hola! 2x Pizza (Mediana) #1/2", PHONE)
    assert url.startswith("https://api.whatsapp.com/send?phone=573124674602&text=%C2%A1Hola!%202x")
    assert "(Mediana)" in url
    assert "%23" in url and "%2F" in url
    assert parse_qs(urlparse(url).query)["text"] == ["¡Hola! 2x Pizza (Mediana) #1/2"]


def test_anonymous_checkout_goes_to_whatsapp(cart, session, customer_info):
    result = checkout(cart, customer_info, session, api=None, whatsapp_phone=PHONE)

    assert result.channel == "whatsapp"
    assert result.order_id is None
    text = parse_qs(urlparse(result.url).query)["text"][0]
    assert "*Total: $35.000*" in text
    assert cart.is_empty


def test_logged_in_checkout_posts_the_order(cart, session, api, customer_info):
    user_id = api.register("ana", "ana@x.com", "secret1")["userId"]
    session.save_login(api.login("ana", "secret1"))

    result = checkout(cart, customer_info, session, api, whatsapp_phone=PHONE)

    assert result.channel == "api"
    assert result.url is None
    assert cart.is_empty
    history = api.order_history(session.token, user_id)
    assert [o["id"] for o in history] == [result.order_id]
    assert history[0]["totalAmount"] == 35000
    assert history[0]["items"][0] == {"name": "Pizza Hawaiana", "size": "Mediana", "price": 15000, "quantity": 2}


def test_rejected_token_logs_out_and_keeps_cart(cart, session, api, customer_info):
    session.save_login({"token": "stale-token", "userId": "u1", "username": "ana"})

    with pytest.raises(Unauthorized):
        checkout(cart, customer_info, session, api, whatsapp_phone=PHONE)

    assert not session.is_authenticated
    assert cart.count() == 3


def test_empty_cart_cannot_check_out(storage, session, customer_info):
    with pytest.raises(ValidationError):
        checkout(Cart(storage), customer_info, session, api=None, whatsapp_phone=PHONE)


def test_incomplete_form_is_rejected(cart, session, customer_info):
    del customer_info["shippingAddress"]
    with pytest.raises(ValidationError):
        checkout(cart, customer_info, session, api=None, whatsapp_phone=PHONE)
    assert not cart.is_empty


def test_api_client_maps_errors(api):
    api.register("ana", "ana@x.com", "secret1")
    with pytest.raises(Conflict):
        api.register("ana", "ana2@x.com", "secret1")
    with pytest.raises(Unauthorized):
        api.login("ana", "wrong-secret")
    with pytest.raises(ValidationError) as exc:
        api.register("ab", "nope", "123")
    assert len(exc.value.errors) == 3
