"""Canonical schema service."""
