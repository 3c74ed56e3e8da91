"""
Database models for the sales back office.

All models are exported here for convenient imports:
    from src.models import Person, Deal, Commission, etc.
"""

from src.models.audit import AuditAction, AuditLog
from src.models.base import Base, BaseModel, TimestampMixin
from src.models.commission import Commission, CommissionHistory, CommissionStatus
from src.models.deal import PAYABLE_FIELDS, Deal, DealStatus
from src.models.document import Document, DocumentStatus
from src.models.org import (
    LeadershipRole,
    Office,
    OfficeLeadership,
    PersonTeam,
    Region,
    Role,
    Team,
)
from src.models.pay_plan import (
    CalcMethod,
    CommissionRule,
    OverrideSource,
    PayPlan,
    PersonPayPlan,
    RuleType,
)
from src.models.person import Person, PersonStatus, SetterTier
from src.models.recruit import Recruit, RecruitStatus
from src.models.settings import SystemSetting

__all__ = [
    # Base
    "Base",
    "BaseModel",
    "TimestampMixin",
    # Org
    "Role",
    "Region",
    "Office",
    "Team",
    "PersonTeam",
    "OfficeLeadership",
    "LeadershipRole",
    # Person
    "Person",
    "PersonStatus",
    "SetterTier",
    # Pay plans
    "PayPlan",
    "PersonPayPlan",
    "CommissionRule",
    "RuleType",
    "CalcMethod",
    "OverrideSource",
    # Deal
    "Deal",
    "DealStatus",
    "PAYABLE_FIELDS",
    # Commission
    "Commission",
    "CommissionHistory",
    "CommissionStatus",
    # Recruiting
    "Recruit",
    "RecruitStatus",
    "Document",
    "DocumentStatus",
    # Settings
    "SystemSetting",
    # Audit
    "AuditLog",
    "AuditAction",
]
