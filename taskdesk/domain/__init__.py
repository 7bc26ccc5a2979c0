"""Domain layer: entities, value objects, enums, state machines, and exceptions.

No dependencies on infrastructure or presentation.
"""
