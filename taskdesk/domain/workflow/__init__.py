"""Explicit state machines for modification requests and task sub-flows."""
