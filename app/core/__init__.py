"""Core configuration, logging, exceptions and application events."""
