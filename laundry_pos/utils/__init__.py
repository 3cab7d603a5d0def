"""
Laundry POS Utilities Package

Helpers shared by the receipt formatter, the printer manager and the print
bridge:
- currency.py: Rupiah formatting for receipts
- response.py: Standard response dicts for print bridge endpoints
- bridge_client.py: HTTP client for a remote print bridge
"""
