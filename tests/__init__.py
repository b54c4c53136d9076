"""
Tests for the cart service.
"""
