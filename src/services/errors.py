"""
Domain exceptions raised by the back-office services.

The API layer maps these onto HTTP status codes; services never raise
HTTPException themselves.
"""

from typing import Optional


class BackOfficeError(Exception):
    """Base class for all domain errors."""


class DealNotFoundError(BackOfficeError):
    def __init__(self, deal_id: int):
        super().__init__(f"Deal {deal_id} not found")
        self.deal_id = deal_id


class RuleConfigurationError(BackOfficeError):
    """A commission rule has missing or misplaced override_level / override_source."""

    def __init__(self, message: str, rule_id: Optional[int] = None):
        super().__init__(message)
        self.rule_id = rule_id


class InvalidStatusTransition(BackOfficeError):
    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot move commission from '{current}' to '{requested}'")
        self.current = current
        self.requested = requested


class HierarchyCycleError(BackOfficeError):
    """Assigning the parent would make the person their own ancestor."""

    def __init__(self, person_id: int, parent_id: int, source: str):
        super().__init__(
            f"Setting {source} of person {person_id} to {parent_id} would create a cycle"
        )
        self.person_id = person_id
        self.parent_id = parent_id
        self.source = source
