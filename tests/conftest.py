from pathlib import Path

import pytest
import requests
from fastapi.testclient import TestClient
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

from melos.app import MelosApp
from melos.core.config import load_settings
from melos_web.main import create_app

TEST_SECRET = "test-signing-key"


class FakeClock:
    """Manually advanced clock for token expiry tests."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InProcessAdapter(BaseAdapter):
    """requests transport that hands requests to a FastAPI TestClient."""

    def __init__(self, client: TestClient):
        super().__init__()
        self.client = client

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        resp = self.client.request(
            request.method,
            request.url,
            content=request.body,
            headers=dict(request.headers),
        )
        response = requests.Response()
        response.status_code = resp.status_code
        response._content = resp.content
        response.headers = CaseInsensitiveDict(resp.headers)
        response.encoding = "utf-8"
        response.url = request.url
        response.request = request
        return response

    def close(self):
        pass


def make_settings(data_dir: Path, **auth):
    return load_settings(
        path=data_dir / "missing-settings.yaml",
        overrides={
            "auth": {"secret_key": TEST_SECRET, "bcrypt_rounds": 4, **auth},
            "storage": {"data_dir": str(data_dir), "lock_timeout_seconds": 5},
        },
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path / "data")


@pytest.fixture
def melos_app(settings, clock):
    return MelosApp(settings, clock=clock)


@pytest.fixture
def client(melos_app):
    return TestClient(create_app(melos=melos_app))


@pytest.fixture
def http_session(client):
    session = requests.Session()
    session.mount("http://testserver", InProcessAdapter(client))
    return session


@pytest.fixture
def items():
    return [
        {"name": "Pizza Hawaiana", "size": "Mediana", "price": 15000, "quantity": 2},
        {"name": "Gaseosa", "size": None, "price": 15000, "quantity": 1},
    ]


@pytest.fixture
def customer_info():
    return {
        "paymentMethod": "efectivo",
        "shippingAddress": "Calle 10 # 5-20",
        "shippingNeighborhood": "Centro",
        "contactPhone": "3001234567",
    }
