"""
Keys module.

This module manages the lifecycle of access keys:
- Issuing keys and binding them to a device (HWID) on first use
- Verifying keys against the bound device
- Banning, unbanning, and resetting keys
"""
