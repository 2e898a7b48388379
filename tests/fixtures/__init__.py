"""Test fixture package for the schema service.

Contains fixtures for:
- In-memory content source, clock and schema components
- FastAPI application and clients
"""
