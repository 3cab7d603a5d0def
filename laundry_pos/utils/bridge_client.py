# -*- coding: utf-8 -*-
# Copyright (c) 2023, IMOGI and contributors
# For license information, please see license.txt

"""
Client for the Laundry POS print bridge.

Used by POS front ends that run on a machine without the printer attached.
Every call returns a result dict with a ``success`` flag; network errors are
reported in the dict instead of being raised.
"""

import json
import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15


class PrintBridgeClient:
    """
    Talks to a running print bridge over HTTP.

    Args:
        url (str): Bridge base URL, e.g. ``http://localhost:5555``
        token (str, optional): Bearer token configured on the bridge
        timeout (int, optional): Request timeout in seconds
    """

    def __init__(self, url: str, token: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT):
        self.url = url.rstrip("/")
        self.token = token
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.url}{path}"
        try:
            response = requests.request(
                method,
                url,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Error connecting to print bridge at {url}: {str(e)}")
            return {
                "success": False,
                "error": "bridge_unreachable",
                "message": f"Error connecting to print bridge: {str(e)}",
            }

        try:
            result = response.json()
        except (json.JSONDecodeError, ValueError):
            return {
                "success": False,
                "error": "invalid_response",
                "message": "Invalid response from print bridge",
                "status_code": response.status_code,
                "response_text": response.text,
            }

        if not isinstance(result, dict):
            return {"success": False, "error": "invalid_response", "status_code": response.status_code}

        result.setdefault("success", response.status_code == 200)
        result["status_code"] = response.status_code
        if not result["success"]:
            logger.warning(f"Print bridge returned {response.status_code}: {result.get('error')}")
        return result

    def health(self) -> Dict[str, Any]:
        result = self._request("GET", "/health")
        if result.get("status") == "ok":
            result["success"] = True
        return result

    def list_paired_devices(self) -> Dict[str, Any]:
        return self._request("GET", "/devices")

    def connect(self, device_id: str) -> Dict[str, Any]:
        return self._request("POST", "/connect", {"device_id": device_id})

    def disconnect(self) -> Dict[str, Any]:
        return self._request("POST", "/disconnect")

    def reconnect(self) -> Dict[str, Any]:
        return self._request("POST", "/reconnect")

    def status(self) -> Dict[str, Any]:
        return self._request("GET", "/status")

    def get_paper_width(self) -> Dict[str, Any]:
        return self._request("GET", "/settings/paper-width")

    def set_paper_width(self, paper_width: str) -> Dict[str, Any]:
        return self._request("POST", "/settings/paper-width", {"paper_width": paper_width})

    def print_receipt(self, transaction: Dict[str, Any], shop_profile: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._request(
            "POST",
            "/print/receipt",
            {"transaction": transaction, "shop_profile": shop_profile},
        )

    def preview_receipt(
        self,
        transaction: Dict[str, Any],
        shop_profile: Optional[Dict[str, Any]] = None,
        paper_width: Optional[str] = None,
    ) -> Dict[str, Any]:
        return self._request(
            "POST",
            "/print/preview",
            {"transaction": transaction, "shop_profile": shop_profile, "paper_width": paper_width},
        )

    def print_test_page(self) -> Dict[str, Any]:
        return self._request("POST", "/print/test")
