"""Delivery mechanisms."""
