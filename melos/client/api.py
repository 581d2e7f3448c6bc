"""HTTP client for the storefront backend"""

from typing import Any, Dict, List, Optional

import requests

from ..utils.exceptions import (
    Conflict,
    Forbidden,
    InternalError,
    MelosError,
    Unauthorized,
    ValidationError,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)


def _error_from_response(status_code: int, body: Dict[str, Any]) -> MelosError:
    message = body.get("message") or f"HTTP {status_code}"
    if status_code == 400:
        return ValidationError(message, body.get("errors"))
    if status_code == 401:
        return Unauthorized(message)
    if status_code == 403:
        return Forbidden(message)
    if status_code == 409:
        return Conflict(message)
    return InternalError(message)


class ApiClient:
    """Client for the /api endpoints, mapping error responses onto the exception taxonomy"""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        session: Optional[requests.Session] = None,
        connection_timeout: int = 10,
        read_timeout: int = 30,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        # Use tuple timeout: (connect_timeout, read_timeout)
        self.timeout = (connection_timeout, read_timeout)

    def _request(
        self,
        method: str,
        endpoint: str,
        token: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        headers = {"Authorization": f"Bearer {token}"} if token else {}

        try:
            response = self.session.request(
                method=method,
                url=url,
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error("Backend request failed", method=method, endpoint=endpoint, error=str(e))
            raise InternalError(f"Could not reach the backend: {e}")

        logger.debug(
            "Received response from backend",
            method=method,
            endpoint=endpoint,
            status_code=response.status_code,
        )

        try:
            result = response.json()
        except ValueError:
            result = {}

        if response.status_code >= 400:
            raise _error_from_response(response.status_code, result if isinstance(result, dict) else {})
        return result

    def register(self, username: str, email: str, password: str) -> Dict[str, Any]:
        return self._request(
            "POST",
            "/api/register",
            payload={"username": username, "email": email, "password": password},
        )

    def login(self, username_or_email: str, password: str) -> Dict[str, Any]:
        return self._request(
            "POST",
            "/api/login",
            payload={"usernameOrEmail": username_or_email, "password": password},
        )

    def create_order(
        self,
        token: str,
        items: List[Dict[str, Any]],
        customer_info: Dict[str, Any],
        total_amount: float,
    ) -> Dict[str, Any]:
        return self._request(
            "POST",
            "/api/orders",
            token=token,
            payload={"items": items, "customerInfo": customer_info, "totalAmount": total_amount},
        )

    def order_history(self, token: str, user_id: str) -> List[Dict[str, Any]]:
        return self._request("GET", f"/api/users/{user_id}/orders", token=token)
