"""
Request/response bodies for the JSON API.

Wire names follow the storefront front end (camelCase). Request models
ignore unknown fields, so an identity smuggled into an order body
(userId, user...) never reaches the workflow.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", allow_inf_nan=False)


class RegisterRequest(_Body):
    username: str = ""
    email: str = ""
    password: str = ""


class RegisterResponse(_Body):
    message: str
    user_id: str = Field(..., alias="userId")


class LoginRequest(_Body):
    username_or_email: str = Field("", alias="usernameOrEmail")
    password: str = ""


class LoginResponse(_Body):
    message: str
    token: str
    user_id: str = Field(..., alias="userId")
    username: str


class OrderCreateRequest(_Body):
    items: Optional[List[Dict[str, Any]]] = None
    customer_info: Optional[Dict[str, Any]] = Field(None, alias="customerInfo")
    total_amount: Optional[float] = Field(None, alias="totalAmount")


class OrderCreateResponse(_Body):
    message: str
    order_id: str = Field(..., alias="orderId")


class ErrorResponse(_Body):
    message: str
    errors: Optional[List[str]] = None
