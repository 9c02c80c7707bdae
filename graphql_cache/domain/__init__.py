"""
Cache Domain Module

Key construction, value shapes, sanitization, deconstruction and the
deferred-value type. No I/O happens here.
"""
