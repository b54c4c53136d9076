"""
Component tests for the cart service

Component tests exercise the real services, user store and product lookup
against an on-disk SQLite database, and the FastAPI routes through an
ASGI transport.
"""
