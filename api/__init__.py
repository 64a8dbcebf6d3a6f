"""
HTTP API for the key service.

Versioned under api/v1: client endpoints (verify, gate callback) and
admin endpoints (key administration).
"""
