"""Transaction escalation domain."""

from .config import EscalationConfig
from .evaluator import EscalationEvaluator
from .exceptions import AmlAlertStoreUnavailableError, TransactionNotFoundError
from .models import (
    AmlSeverity,
    AmlStatus,
    AuditAction,
    AuditEntry,
    EscalationDecision,
    EscalationInfo,
    EscalationReason,
    EscalationRole,
    TransactionRiskSnapshot,
)
from .reader import EscalationReader
from .recorder import EscalationRecorder
from .repository import EscalationRepository, SqlEscalationRepository
from .rules import ESCALATION_RULES

__all__ = [
    "ESCALATION_RULES",
    "AmlAlertStoreUnavailableError",
    "AmlSeverity",
    "AmlStatus",
    "AuditAction",
    "AuditEntry",
    "EscalationConfig",
    "EscalationDecision",
    "EscalationEvaluator",
    "EscalationInfo",
    "EscalationReader",
    "EscalationReason",
    "EscalationRecorder",
    "EscalationRepository",
    "EscalationRole",
    "SqlEscalationRepository",
    "TransactionNotFoundError",
    "TransactionRiskSnapshot",
]
