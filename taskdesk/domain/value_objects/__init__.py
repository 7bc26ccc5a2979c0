"""Immutable domain value objects."""

from taskdesk.domain.value_objects.core import (
    SYSTEM_ACTOR,
    Actor,
    ProposedChanges,
    WorkflowPolicy,
)

__all__ = ["SYSTEM_ACTOR", "Actor", "ProposedChanges", "WorkflowPolicy"]
