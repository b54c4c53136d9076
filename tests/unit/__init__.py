"""
Unit tests for the pure cart-line helpers.
"""
