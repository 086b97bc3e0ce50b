"""Pydantic models for the escalation domain."""

from datetime import datetime
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, Field


class EscalationRole(StrEnum):
    SUPER_ADMIN = "SUPER_ADMIN"
    COMPLIANCE_OFFICER = "COMPLIANCE_OFFICER"


class EscalationReason(StrEnum):
    HIGH_VALUE = "HIGH_VALUE"
    HIGH_FRAUD_SCORE = "HIGH_FRAUD_SCORE"
    AML_ALERT = "AML_ALERT"
    MANUAL_REVIEW = "MANUAL_REVIEW"


class AmlSeverity(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class AmlStatus(StrEnum):
    OPEN = "OPEN"
    RESOLVED = "RESOLVED"


class AuditAction(StrEnum):
    TRANSACTION_ESCALATED = "TRANSACTION_ESCALATED"


class TransactionRiskSnapshot(BaseModel):
    """The transaction fields and owner fraud score the rules look at."""

    transaction_id: int
    amount_sent: Decimal
    user_id: int | None = None
    fraud_score: int | None = None
    admin_notes: str | None = None


class RuleOutcome(BaseModel):
    rule_name: str
    triggered: bool
    reason: str | None = None
    category: EscalationReason | None = None
    escalate_to: EscalationRole | None = None


class EscalationDecision(BaseModel):
    needs_escalation: bool = False
    reasons: list[str] = Field(default_factory=list)
    categories: list[EscalationReason] = Field(default_factory=list)
    escalate_to: EscalationRole | None = None


class EscalationInfo(BaseModel):
    is_escalated: bool = False
    reasons: list[str] = Field(default_factory=list)
    escalate_to: str | None = None


class AuditEntry(BaseModel):
    id: int
    admin_id: int
    action: str
    entity: str
    entity_id: str | None = None
    old_value: dict | None = None
    new_value: dict | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class EscalateRequest(BaseModel):
    admin_id: int
    reasons: list[str] | None = None
    escalate_to: EscalationRole | None = None
