#!/usr/bin/env python3
"""
Laundry POS - Thermal Printer Bridge
Local HTTP service that lets the POS front end drive the Bluetooth receipt
printer attached to this machine.

Installation per cashier PC:
1. pip install laundry_pos[bluetooth]
2. laundry-print-bridge   (or: python -m laundry_pos.print_bridge)
3. Access in browser: http://localhost:5555/health

Usage:
- Paired printers: GET /devices
- Connect / disconnect: POST /connect, POST /disconnect, POST /reconnect
- Print a transaction receipt: POST /print/receipt
- Preview without a printer: POST /print/preview
"""

import logging
import sys
from functools import wraps

from flask import Flask, current_app, jsonify, request
from flask_cors import CORS

from laundry_pos import __version__
from laundry_pos.config import load_config
from laundry_pos.printer.manager import PrinterConnectionManager
from laundry_pos.receipt.escpos import strip_control_codes
from laundry_pos.receipt.formatter import format_receipt
from laundry_pos.receipt.models import PaperWidth
from laundry_pos.utils.response import (
    auth_error,
    printer_error_response,
    success_response,
    validation_error,
)

logger = logging.getLogger('PrintBridge')


def _manager() -> PrinterConnectionManager:
    return current_app.config['PRINTER_MANAGER']


def _json_body():
    return request.get_json(silent=True) or {}


def _reply(result):
    """``jsonify`` a response dict or a ``(dict, status)`` pair."""
    if isinstance(result, tuple):
        body, status = result
        return jsonify(body), status
    return jsonify(result)


def require_token(fn):
    """Reject requests without the configured bearer token."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        token = current_app.config.get('PRINT_BRIDGE_TOKEN')
        if token and request.headers.get('Authorization') != f"Bearer {token}":
            return _reply(auth_error("Invalid or missing bridge token"))
        return fn(*args, **kwargs)
    return wrapper


def health_check():
    """Health check endpoint"""
    return jsonify({
        'status': 'ok',
        'service': 'Laundry POS Print Bridge',
        'version': __version__
    })


@require_token
def list_devices():
    """
    List printers paired with this machine

    Returns 403 when Bluetooth access is not permitted.
    """
    manager = _manager()
    devices = manager.list_paired_devices()
    if manager.last_error is not None:
        return _reply(printer_error_response(manager.last_error))

    return _reply(success_response({
        'devices': [device.as_dict() for device in devices],
        'count': len(devices)
    }))


@require_token
def connect():
    """
    Connect to a paired printer

    Request JSON:
    {
        "device_id": "00:11:22:33:44:55"
    }
    """
    device_id = _json_body().get('device_id')
    if not device_id:
        return _reply(validation_error("device_id is required"))

    manager = _manager()
    device = manager.connect(device_id)
    if device is None:
        return _reply(printer_error_response(manager.last_error))

    return _reply(success_response(device.as_dict(), f"Connected to {device.name or device.id}"))


@require_token
def disconnect():
    manager = _manager()
    if not manager.disconnect():
        return _reply(printer_error_response(manager.last_error))
    return _reply(success_response(manager.status(), "Printer disconnected"))


@require_token
def reconnect():
    """Reconnect to the last used printer, if one was saved"""
    manager = _manager()
    device = manager.reconnect_if_needed()
    if device is None and manager.last_error is not None:
        return _reply(printer_error_response(manager.last_error))
    return _reply(success_response(manager.status()))


@require_token
def status():
    return _reply(success_response(_manager().status()))


@require_token
def paper_width():
    """
    Read or change the paper width

    Request JSON (POST):
    {
        "paper_width": "58" | "76" | "80"
    }
    """
    manager = _manager()
    if request.method == 'POST':
        width = _json_body().get('paper_width')
        if not manager.set_paper_width(width):
            return _reply(printer_error_response(manager.last_error))

    code = manager.get_paper_width()
    return _reply(success_response({
        'paper_width': code,
        'columns': PaperWidth.COLUMNS[code]
    }))


@require_token
def print_receipt():
    """
    Print a transaction receipt on the connected printer

    Request JSON:
    {
        "transaction": {...},     # transaction snapshot
        "shop_profile": {...}     # optional shop header
    }
    """
    data = _json_body()
    transaction = data.get('transaction')
    if not transaction:
        return _reply(validation_error("transaction is required"))

    manager = _manager()
    if not manager.print_receipt(transaction, data.get('shop_profile')):
        return _reply(printer_error_response(manager.last_error))

    return _reply(success_response({'printed': True}, "Receipt sent to printer"))


@require_token
def preview_receipt():
    """Render a receipt as plain text without touching the printer"""
    data = _json_body()
    transaction = data.get('transaction')
    if not transaction:
        return _reply(validation_error("transaction is required"))

    code = PaperWidth.resolve(data.get('paper_width') or _manager().get_paper_width())
    receipt = format_receipt(transaction, data.get('shop_profile'), code)
    if not receipt:
        return _reply(validation_error("transaction could not be formatted"))

    return _reply(success_response({
        'paper_width': code,
        'receipt': strip_control_codes(receipt)
    }))


@require_token
def print_test():
    manager = _manager()
    if not manager.print_test_page():
        return _reply(printer_error_response(manager.last_error))
    return _reply(success_response({'printed': True}, "Test page sent to printer"))


def create_app(manager=None, token=None, config=None):
    """
    Build the print bridge application.

    Args:
        manager (PrinterConnectionManager, optional): Shared printer manager.
            Built from ``config`` when omitted.
        token (str, optional): Bearer token required by every endpoint except
            ``/health``.
        config (dict, optional): Result of :func:`laundry_pos.config.load_config`.
    """
    config = config or load_config()

    app = Flask(__name__)
    CORS(app)  # Allow cross-origin requests from the POS front end

    app.config['PRINTER_MANAGER'] = manager or PrinterConnectionManager.from_config(config)
    app.config['PRINT_BRIDGE_TOKEN'] = token if token is not None else config.get('bridge_token')

    app.add_url_rule('/health', 'health', health_check, methods=['GET'])
    app.add_url_rule('/devices', 'devices', list_devices, methods=['GET'])
    app.add_url_rule('/connect', 'connect', connect, methods=['POST'])
    app.add_url_rule('/disconnect', 'disconnect', disconnect, methods=['POST'])
    app.add_url_rule('/reconnect', 'reconnect', reconnect, methods=['POST'])
    app.add_url_rule('/status', 'status', status, methods=['GET'])
    app.add_url_rule('/settings/paper-width', 'paper_width', paper_width, methods=['GET', 'POST'])
    app.add_url_rule('/print/receipt', 'print_receipt', print_receipt, methods=['POST'])
    app.add_url_rule('/print/preview', 'preview_receipt', preview_receipt, methods=['POST'])
    app.add_url_rule('/print/test', 'print_test', print_test, methods=['POST'])

    return app


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    config = load_config()
    app = create_app(config=config)
    manager = app.config['PRINTER_MANAGER']

    logger.info("=" * 60)
    logger.info("Laundry POS - Thermal Printer Bridge")
    logger.info("=" * 60)
    logger.info(f"Starting server on http://{config['bridge_host']}:{config['bridge_port']}")
    logger.info(f"Settings file: {config['settings_path']}")

    device = manager.reconnect_if_needed()
    if device:
        logger.info(f"Reconnected to printer {device.name or device.id}")
    else:
        logger.info("No printer connected, select one via POST /connect")
    logger.info("=" * 60)

    try:
        app.run(
            host=config['bridge_host'],
            port=config['bridge_port'],
            debug=False,
            threaded=True
        )
    except KeyboardInterrupt:
        logger.info("\nShutting down Print Bridge...")
    except Exception as e:
        logger.error(f"Server error: {str(e)}")
        sys.exit(1)


if __name__ == '__main__':
    main()
