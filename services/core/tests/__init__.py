"""Outlets service tests."""
