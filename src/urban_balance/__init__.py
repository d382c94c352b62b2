"""Urban Balance package wiring and entrypoints."""

from urban_balance.main import run_dev, run_prod
from urban_balance.settings import BackendSettings, get_settings, settings

main = run_dev

__all__ = [
    "BackendSettings",
    "get_settings",
    "main",
    "run_dev",
    "run_prod",
    "settings",
]
