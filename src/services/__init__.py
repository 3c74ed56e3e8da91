"""Business logic services."""

from src.services.commission import (
    CommissionCalculator,
    calculate_commissions_safely,
    transition_commission,
    void_commissions_for_deal,
)
from src.services.hierarchy import HierarchyWalker
from src.services.person_graph import PersonGraph
from src.services.scope_filter import can_view, to_query_restriction
from src.services.settings_store import SettingsStore
from src.services.visibility import resolve_visibility_scope

__all__ = [
    "CommissionCalculator",
    "calculate_commissions_safely",
    "transition_commission",
    "void_commissions_for_deal",
    "HierarchyWalker",
    "PersonGraph",
    "can_view",
    "to_query_restriction",
    "SettingsStore",
    "resolve_visibility_scope",
]
