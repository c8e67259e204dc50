"""CORS proxy for the upstream simple-price endpoint."""

from pricefeed.proxy.app import create_proxy_app

__all__ = ["create_proxy_app"]
