"""Shared utilities: request context, telemetry, time and id helpers.

Used by every layer. No business logic.
"""
