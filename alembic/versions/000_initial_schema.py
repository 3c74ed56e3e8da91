"""Initial database schema

Revision ID: 000_initial_schema
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "000_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Create all initial tables."""

    # Org lookups
    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_roles_level", "roles", ["level"])

    op.create_table(
        "regions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "offices",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("region_id", sa.Integer(), sa.ForeignKey("regions.id"), nullable=True),
        sa.Column("division", sa.String(100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_offices_region_id", "offices", ["region_id"])

    # People
    op.create_table(
        "people",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("role_id", sa.Integer(), sa.ForeignKey("roles.id"), nullable=False),
        sa.Column("office_id", sa.Integer(), sa.ForeignKey("offices.id"), nullable=True),
        sa.Column("reports_to_id", sa.Integer(), sa.ForeignKey("people.id"), nullable=True),
        sa.Column("recruited_by_id", sa.Integer(), sa.ForeignKey("people.id"), nullable=True),
        sa.Column(
            "status",
            sa.Enum("onboarding", "active", "inactive", "terminated", name="personstatus"),
            nullable=False,
            server_default="active",
        ),
        sa.Column(
            "setter_tier",
            sa.Enum("Rookie", "Veteran", "Team Lead", name="settertier"),
            nullable=True,
        ),
        sa.Column("hire_date", sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_people_email", "people", ["email"], unique=True)
    op.create_index("ix_people_role_id", "people", ["role_id"])
    op.create_index("ix_people_office_id", "people", ["office_id"])
    op.create_index("ix_people_reports_to_id", "people", ["reports_to_id"])
    op.create_index("ix_people_recruited_by_id", "people", ["recruited_by_id"])
    op.create_index("ix_people_status", "people", ["status"])

    op.create_table(
        "teams",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("office_id", sa.Integer(), sa.ForeignKey("offices.id"), nullable=True),
        sa.Column("team_lead_id", sa.Integer(), sa.ForeignKey("people.id"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_teams_office_id", "teams", ["office_id"])
    op.create_index("ix_teams_team_lead_id", "teams", ["team_lead_id"])

    op.create_table(
        "person_teams",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("person_id", sa.Integer(), sa.ForeignKey("people.id"), nullable=False),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id"), nullable=False),
        sa.Column("effective_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_person_teams_person_id", "person_teams", ["person_id"])
    op.create_index("ix_person_teams_team_id", "person_teams", ["team_id"])

    op.create_table(
        "office_leadership",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("person_id", sa.Integer(), sa.ForeignKey("people.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "role_type",
            sa.Enum("ad", "regional", "divisional", "vp", name="leadershiprole"),
            nullable=False,
        ),
        sa.Column("office_id", sa.Integer(), sa.ForeignKey("offices.id"), nullable=True),
        sa.Column("region_id", sa.Integer(), sa.ForeignKey("regions.id"), nullable=True),
        sa.Column("division", sa.String(100), nullable=True),
        sa.Column("effective_from", sa.Date(), nullable=False),
        sa.Column("effective_to", sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_office_leadership_person_id", "office_leadership", ["person_id"])
    op.create_index("ix_office_leadership_office_id", "office_leadership", ["office_id"])
    op.create_index("ix_office_leadership_region_id", "office_leadership", ["region_id"])

    # Pay plans and rules
    op.create_table(
        "pay_plans",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "person_pay_plans",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("person_id", sa.Integer(), sa.ForeignKey("people.id"), nullable=False),
        sa.Column("pay_plan_id", sa.Integer(), sa.ForeignKey("pay_plans.id"), nullable=False),
        sa.Column("effective_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_person_pay_plans_person_id", "person_pay_plans", ["person_id"])

    op.create_table(
        "commission_rules",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("pay_plan_id", sa.Integer(), sa.ForeignKey("pay_plans.id"), nullable=False),
        sa.Column("name", sa.String(100), nullable=True),
        sa.Column(
            "rule_type",
            sa.Enum(
                "setter_commission", "closer_commission", "self_gen_commission",
                "override", "recruiting_bonus", "draw",
                name="ruletype",
            ),
            nullable=False,
        ),
        sa.Column(
            "calc_method",
            sa.Enum("flat_per_kw", "percentage_of_deal", "flat_fee", name="calcmethod"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(10, 4), nullable=False),
        sa.Column("applies_to_role_id", sa.Integer(), sa.ForeignKey("roles.id"), nullable=True),
        sa.Column("override_level", sa.Integer(), nullable=True),
        sa.Column(
            "override_source",
            sa.Enum("reports_to", "recruited_by", name="overridesource"),
            nullable=True,
        ),
        sa.Column("deal_types", sa.JSON(), nullable=True),
        sa.Column("conditions", sa.JSON(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint(
            "(rule_type = 'override' AND override_level >= 1 AND override_source IS NOT NULL)"
            " OR (rule_type <> 'override' AND override_level IS NULL AND override_source IS NULL)",
            name="ck_commission_rules_override_fields",
        ),
    )
    op.create_index("ix_commission_rules_pay_plan_id", "commission_rules", ["pay_plan_id"])
    op.create_index("ix_commission_rules_is_active", "commission_rules", ["is_active"])

    # Deals and commissions
    op.create_table(
        "deals",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_name", sa.String(200), nullable=True),
        sa.Column("setter_id", sa.Integer(), sa.ForeignKey("people.id"), nullable=True),
        sa.Column("closer_id", sa.Integer(), sa.ForeignKey("people.id"), nullable=True),
        sa.Column("is_self_gen", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("office_id", sa.Integer(), sa.ForeignKey("offices.id"), nullable=True),
        sa.Column("deal_type", sa.String(50), nullable=True),
        sa.Column("system_size_kw", sa.Numeric(10, 3), nullable=True),
        sa.Column("ppw", sa.Numeric(10, 4), nullable=True),
        sa.Column("deal_value", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("sale_date", sa.Date(), nullable=True),
        sa.Column("close_date", sa.Date(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "sold", "pending", "permitted", "scheduled", "installed",
                "pto", "complete", "cancelled",
                name="dealstatus",
            ),
            nullable=False,
            server_default="sold",
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_deals_setter_id", "deals", ["setter_id"])
    op.create_index("ix_deals_closer_id", "deals", ["closer_id"])
    op.create_index("ix_deals_office_id", "deals", ["office_id"])
    op.create_index("ix_deals_status", "deals", ["status"])

    op.create_table(
        "commissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("deal_id", sa.Integer(), sa.ForeignKey("deals.id", ondelete="CASCADE"), nullable=False),
        sa.Column("person_id", sa.Integer(), sa.ForeignKey("people.id"), nullable=False),
        sa.Column("commission_type", sa.String(50), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "commission_rule_id",
            sa.Integer(),
            sa.ForeignKey("commission_rules.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "pay_plan_id",
            sa.Integer(),
            sa.ForeignKey("pay_plans.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("calc_details", sa.JSON(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("pending", "approved", "paid", "void", name="commissionstatus"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("status_reason", sa.Text(), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_commissions_deal_id", "commissions", ["deal_id"])
    op.create_index("ix_commissions_person_id", "commissions", ["person_id"])
    op.create_index("ix_commissions_status", "commissions", ["status"])

    op.create_table(
        "commission_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "commission_id",
            sa.Integer(),
            sa.ForeignKey("commissions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("previous_status", sa.String(20), nullable=True),
        sa.Column("new_status", sa.String(20), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("changed_by_id", sa.Integer(), sa.ForeignKey("people.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_commission_history_commission_id", "commission_history", ["commission_id"])

    # Recruiting
    op.create_table(
        "recruits",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("recruiter_id", sa.Integer(), sa.ForeignKey("people.id"), nullable=False),
        sa.Column("target_office_id", sa.Integer(), sa.ForeignKey("offices.id"), nullable=True),
        sa.Column("target_reports_to_id", sa.Integer(), sa.ForeignKey("people.id"), nullable=True),
        sa.Column("converted_person_id", sa.Integer(), sa.ForeignKey("people.id"), nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "lead", "contacted", "interviewing", "offer_sent",
                "agreement_signed", "converted", "rejected",
                name="recruitstatus",
            ),
            nullable=False,
            server_default="lead",
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_recruits_recruiter_id", "recruits", ["recruiter_id"])
    op.create_index("ix_recruits_target_office_id", "recruits", ["target_office_id"])
    op.create_index("ix_recruits_status", "recruits", ["status"])

    op.create_table(
        "documents",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("person_id", sa.Integer(), sa.ForeignKey("people.id"), nullable=True),
        sa.Column("recruit_id", sa.Integer(), sa.ForeignKey("recruits.id"), nullable=True),
        sa.Column(
            "status",
            sa.Enum("draft", "sent", "viewed", "signed", "declined", "voided", name="documentstatus"),
            nullable=False,
            server_default="draft",
        ),
        sa.Column("external_id", sa.String(255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_documents_person_id", "documents", ["person_id"])
    op.create_index("ix_documents_recruit_id", "documents", ["recruit_id"])

    # Settings and audit
    op.create_table(
        "system_settings",
        sa.Column("key", sa.String(100), primary_key=True),
        sa.Column("value", sa.JSON(), nullable=False),
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("people.id"), nullable=False),
        sa.Column(
            "action",
            sa.Enum(
                "create_deal", "update_deal", "cancel_deal", "recalculate_commissions",
                "update_commission_status", "change_manager", "change_recruiter",
                "assign_pay_plan",
                name="auditaction",
            ),
            nullable=False,
        ),
        sa.Column("target_type", sa.String(50), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("action_metadata", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    """Drop all tables in reverse order."""
    for table in (
        "audit_logs",
        "system_settings",
        "documents",
        "recruits",
        "commission_history",
        "commissions",
        "deals",
        "commission_rules",
        "person_pay_plans",
        "pay_plans",
        "office_leadership",
        "person_teams",
        "teams",
        "people",
        "offices",
        "regions",
        "roles",
    ):
        op.drop_table(table)

    # Drop enums
    for enum_name in (
        "auditaction",
        "documentstatus",
        "recruitstatus",
        "commissionstatus",
        "dealstatus",
        "overridesource",
        "calcmethod",
        "ruletype",
        "leadershiprole",
        "settertier",
        "personstatus",
    ):
        op.execute(f"DROP TYPE IF EXISTS {enum_name}")
