"""
HTTP layer for the Melo's Pizza backend.

Build the app with melos_web.main.create_app(); routers:
- melos_web.auth_routes.router   (/api/register, /api/login)
- melos_web.order_routes.router  (/api/orders, /api/users/{user_id}/orders)
"""
