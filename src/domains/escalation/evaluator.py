"""Escalation evaluator: decides whether a transaction needs higher-level review."""

import structlog

from .config import EscalationConfig, default_config
from .models import EscalationDecision, EscalationReason, EscalationRole
from .repository import EscalationRepository
from .rules import ESCALATION_RULES, EscalationRule

logger = structlog.get_logger()


class EscalationEvaluator:
    """Runs every escalation rule against a transaction.

    All rules are evaluated; none short-circuits the others. Each triggered
    rule appends its reason and overwrites the target role, so the role of
    the last triggered rule in ``ESCALATION_RULES`` order wins.
    """

    def __init__(
        self,
        repository: EscalationRepository,
        config: EscalationConfig | None = None,
        rules: list[EscalationRule] | None = None,
    ) -> None:
        self._repository = repository
        self._config = config or default_config
        self._rules = list(rules) if rules is not None else list(ESCALATION_RULES)

    async def check_escalation(self, transaction_id: int) -> EscalationDecision:
        snapshot = await self._repository.get_transaction_snapshot(transaction_id)
        if snapshot is None:
            logger.info("escalation_check_transaction_missing", transaction_id=transaction_id)
            return EscalationDecision(needs_escalation=False, reasons=[])

        reasons: list[str] = []
        categories: list[EscalationReason] = []
        escalate_to: EscalationRole | None = None

        for rule in self._rules:
            outcome = await rule.evaluate(snapshot, self._repository, self._config)
            if outcome.triggered and outcome.reason:
                reasons.append(outcome.reason)
                if outcome.category is not None:
                    categories.append(outcome.category)
                escalate_to = outcome.escalate_to

        decision = EscalationDecision(
            needs_escalation=len(reasons) > 0,
            reasons=reasons,
            categories=categories,
            escalate_to=escalate_to,
        )

        logger.info(
            "escalation_checked",
            transaction_id=transaction_id,
            needs_escalation=decision.needs_escalation,
            escalate_to=escalate_to.value if escalate_to else None,
            categories=[c.value for c in categories],
        )
        return decision
