"""Valuation command modules; each exposes `register(app)`."""
