"""
Runtime configuration for Laundry POS printing.

Every value can be overridden through the environment:
- LAUNDRY_POS_SETTINGS_PATH: JSON file holding printer preferences
- PRINT_BRIDGE_HOST / PRINT_BRIDGE_PORT: print bridge listen address
- PRINT_BRIDGE_TOKEN: bearer token required by the print bridge (optional)
- PRINTER_WRITE_TIMEOUT: seconds allowed for one write to the printer
- PRINTER_ENCODING: text encoding used on the wire
- PRINTER_RFCOMM_PORT: fixed RFCOMM channel, skips the SDP lookup
"""

import os

DEFAULT_SETTINGS_PATH = "~/.laundry_pos/printer.json"
DEFAULT_BRIDGE_HOST = "0.0.0.0"
DEFAULT_BRIDGE_PORT = 5555
DEFAULT_WRITE_TIMEOUT = 5.0
DEFAULT_ENCODING = "utf-8"


def _int(value, default):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _float(value, default):
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def load_config(environ=None) -> dict:
    """Read configuration from ``environ`` (defaults to ``os.environ``)."""
    env = os.environ if environ is None else environ
    return {
        "settings_path": env.get("LAUNDRY_POS_SETTINGS_PATH") or DEFAULT_SETTINGS_PATH,
        "bridge_host": env.get("PRINT_BRIDGE_HOST") or DEFAULT_BRIDGE_HOST,
        "bridge_port": _int(env.get("PRINT_BRIDGE_PORT"), DEFAULT_BRIDGE_PORT),
        "bridge_token": env.get("PRINT_BRIDGE_TOKEN") or None,
        "write_timeout": _float(env.get("PRINTER_WRITE_TIMEOUT"), DEFAULT_WRITE_TIMEOUT),
        "encoding": env.get("PRINTER_ENCODING") or DEFAULT_ENCODING,
        "rfcomm_port": _int(env.get("PRINTER_RFCOMM_PORT"), None),
    }
