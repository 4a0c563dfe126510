"""Shared utilities for the Bookshelf API."""
