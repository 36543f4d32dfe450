"""Shared utilities for launcher-auth (files, validation, logging)."""
