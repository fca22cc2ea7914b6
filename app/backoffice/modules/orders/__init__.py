"""
Orders module (schema only).

Orders are not managed here; the table exists so customers with orders
cannot be deleted.
"""
