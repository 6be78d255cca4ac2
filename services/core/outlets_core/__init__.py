"""Outlets service core package."""
