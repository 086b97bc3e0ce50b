"""Escalation rules.

Each rule looks at one risk signal and either stays silent or contributes a
reason and a target role. ``ESCALATION_RULES`` fixes the evaluation order.
"""

from abc import ABC, abstractmethod

import structlog

from .config import EscalationConfig
from .exceptions import AmlAlertStoreUnavailableError
from .models import EscalationReason, EscalationRole, RuleOutcome, TransactionRiskSnapshot
from .repository import EscalationRepository

logger = structlog.get_logger()


class EscalationRule(ABC):
    """Base class for escalation rules."""

    rule_id: str
    category: EscalationReason
    escalate_to: EscalationRole

    @abstractmethod
    async def evaluate(
        self,
        snapshot: TransactionRiskSnapshot,
        repository: EscalationRepository,
        config: EscalationConfig,
    ) -> RuleOutcome:
        """Evaluate this rule against a transaction snapshot."""
        ...

    def _not_triggered(self) -> RuleOutcome:
        return RuleOutcome(rule_name=self.rule_id, triggered=False, category=self.category)

    def _triggered(self, reason: str) -> RuleOutcome:
        return RuleOutcome(
            rule_name=self.rule_id,
            triggered=True,
            reason=reason,
            category=self.category,
            escalate_to=self.escalate_to,
        )


class HighValueRule(EscalationRule):
    rule_id = "high_value_transaction"
    category = EscalationReason.HIGH_VALUE
    escalate_to = EscalationRole.SUPER_ADMIN

    async def evaluate(self, snapshot, repository, config) -> RuleOutcome:
        amount = snapshot.amount_sent
        if amount > config.high_value_threshold:
            return self._triggered(f"High value transaction: ${amount:.2f}")
        return self._not_triggered()


class HighFraudScoreRule(EscalationRule):
    rule_id = "high_fraud_score"
    category = EscalationReason.HIGH_FRAUD_SCORE
    escalate_to = EscalationRole.COMPLIANCE_OFFICER

    async def evaluate(self, snapshot, repository, config) -> RuleOutcome:
        fraud_score = snapshot.fraud_score or 0
        if fraud_score > config.fraud_score_threshold:
            return self._triggered(f"High fraud score: {fraud_score}")
        return self._not_triggered()


class OpenHighAmlAlertRule(EscalationRule):
    rule_id = "open_high_aml_alert"
    category = EscalationReason.AML_ALERT
    escalate_to = EscalationRole.COMPLIANCE_OFFICER

    async def evaluate(self, snapshot, repository, config) -> RuleOutcome:
        if not config.aml_alerts_enabled:
            return self._not_triggered()

        try:
            has_alert = await repository.has_open_high_aml_alert(snapshot.transaction_id)
        except AmlAlertStoreUnavailableError:
            logger.warning(
                "aml_alert_store_unavailable",
                transaction_id=snapshot.transaction_id,
            )
            return self._not_triggered()

        if has_alert:
            return self._triggered("High severity AML alert detected")
        return self._not_triggered()


# All rule instances in evaluation order
ESCALATION_RULES: list[EscalationRule] = [
    HighValueRule(),
    HighFraudScoreRule(),
    OpenHighAmlAlertRule(),
]
