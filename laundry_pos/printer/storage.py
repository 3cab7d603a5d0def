# -*- coding: utf-8 -*-
# Copyright (c) 2023, IMOGI and contributors
# For license information, please see license.txt

"""
Persisted printer preferences.

Two string entries survive a restart: the last connected printer id and the
paper width code. The backing store is a simple key-value interface so the
host application can plug in its own storage.
"""

import json
import logging
import os
import tempfile
import threading
from typing import Dict, Optional

from laundry_pos.printer.errors import InvalidInput
from laundry_pos.receipt.models import PaperWidth

logger = logging.getLogger(__name__)

CONNECTED_DEVICE_KEY = "CONNECTED_PRINTER_ID"
PAPER_WIDTH_KEY = "PRINTER_PAPER_WIDTH"


class KeyValueStore:
    """String key-value store interface."""

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data = dict(initial or {})

    def get_item(self, key):
        return self._data.get(key)

    def set_item(self, key, value):
        self._data[key] = str(value)

    def remove_item(self, key):
        self._data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """
    Key-value store kept in a single JSON file.

    Writes go to a temporary file that replaces the original, so a crash
    mid-write never leaves a truncated settings file behind.
    """

    def __init__(self, path: str):
        self.path = os.path.expanduser(path)
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return data

    def _save(self, data: Dict[str, str]) -> None:
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".printer-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get_item(self, key):
        with self._lock:
            value = self._load().get(key)
        return None if value is None else str(value)

    def _load_for_write(self) -> Dict[str, str]:
        """Like :meth:`_load`, but an unreadable file is replaced on the next save."""
        try:
            return self._load()
        except ValueError as e:
            logger.warning(f"Settings file {self.path} is unreadable, starting fresh: {str(e)}")
            return {}

    def set_item(self, key, value):
        with self._lock:
            data = self._load_for_write()
            data[key] = str(value)
            self._save(data)

    def remove_item(self, key):
        with self._lock:
            data = self._load_for_write()
            if key in data:
                del data[key]
                self._save(data)


class PrinterPreferences:
    """Typed access to the printer entries of a :class:`KeyValueStore`.

    Reads never raise: a store error or a garbage value reads back as
    ``None`` ("no device" / "use default width").
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    def _read(self, key: str) -> Optional[str]:
        try:
            value = self.store.get_item(key)
        except Exception as e:
            logger.error(f"Failed to read {key} from printer settings: {str(e)}")
            return None
        return value or None

    def get_device_id(self) -> Optional[str]:
        return self._read(CONNECTED_DEVICE_KEY)

    def save_device_id(self, device_id: str) -> None:
        self.store.set_item(CONNECTED_DEVICE_KEY, device_id)

    def clear_device_id(self) -> None:
        self.store.remove_item(CONNECTED_DEVICE_KEY)

    def get_paper_width(self) -> Optional[str]:
        """Stored width code, or ``None`` when absent or not a known code."""
        value = self._read(PAPER_WIDTH_KEY)
        code = PaperWidth.parse(value)
        if value and not code:
            logger.warning(f"Ignoring unknown paper width {value!r}")
        return code

    def save_paper_width(self, width: str) -> str:
        code = PaperWidth.parse(width)
        if not code:
            raise InvalidInput(f"Unsupported paper width: {width!r}")
        self.store.set_item(PAPER_WIDTH_KEY, code)
        return code

    def clear_paper_width(self) -> None:
        self.store.remove_item(PAPER_WIDTH_KEY)
