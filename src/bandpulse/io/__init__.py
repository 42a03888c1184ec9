"""Manifest export."""
