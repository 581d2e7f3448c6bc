"""Melo's Pizza ordering backend: credentials, tokens, orders and the storefront client."""

__version__ = "1.0.0"
