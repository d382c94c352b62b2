"""HTTP and WebSocket bridge for playing a local match."""

from urban_balance.api.app import create_api

__all__ = ["create_api"]
