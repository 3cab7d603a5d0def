"""
Laundry POS - receipt formatting and Bluetooth thermal printing for a laundry
point-of-sale.

The package renders transaction records into ESC/POS receipt text, manages a
single Bluetooth printer connection and exposes both over a local print
bridge for POS front ends without direct radio access.
"""

__version__ = "0.1.0"
