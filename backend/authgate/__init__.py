"""Authgate - bearer-token authentication service."""
