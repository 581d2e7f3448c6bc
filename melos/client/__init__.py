"""
Storefront client: cart, login state, backend API client and checkout.

These replace the browser scripts of the storefront; "local storage" is a
JSON file.
"""
