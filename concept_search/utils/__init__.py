"""Utility modules: the error hierarchy and structured logging setup."""
