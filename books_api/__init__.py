"""
FastAPI RESTful API for the Bookshelf catalogue.

This package provides:
- CRUD endpoints over a single relational ``books`` table
- Declarative payload validation for write paths
- Structured error responses for validation, not-found and conflict cases
"""
