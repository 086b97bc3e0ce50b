"""Tests for the escalation evaluator and its rules."""

from decimal import Decimal

import pytest

from src.domains.escalation.config import EscalationConfig
from src.domains.escalation.evaluator import EscalationEvaluator
from src.domains.escalation.models import EscalationReason, EscalationRole
from src.domains.escalation.rules import ESCALATION_RULES, HighValueRule

CONFIG = EscalationConfig()


def _evaluator(repository, config: EscalationConfig = CONFIG) -> EscalationEvaluator:
    return EscalationEvaluator(repository, config)


class TestNoEscalation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("amount", "fraud_score"),
        [("0.00", None), ("9999.99", 80), ("10000.00", 0), ("500.00", 79)],
    )
    async def test_below_all_thresholds(self, repository, amount, fraud_score):
        repository.add_user(1, fraud_score=fraud_score)
        repository.add_transaction(10, amount_sent=amount, user_id=1)
        repository.add_aml_alert(10, severity="MEDIUM", status="OPEN")
        repository.add_aml_alert(10, severity="HIGH", status="RESOLVED")

        decision = await _evaluator(repository).check_escalation(10)

        assert decision.needs_escalation is False
        assert decision.reasons == []
        assert decision.categories == []
        assert decision.escalate_to is None

    @pytest.mark.asyncio
    async def test_missing_transaction_is_negative_result(self, repository):
        decision = await _evaluator(repository).check_escalation(999)
        assert decision.needs_escalation is False
        assert decision.reasons == []
        assert decision.escalate_to is None
        assert repository.aml_queries == 0


class TestHighValueRule:
    @pytest.mark.asyncio
    async def test_exactly_threshold_does_not_fire(self, repository):
        repository.add_user(1)
        repository.add_transaction(10, amount_sent="10000.00")
        decision = await _evaluator(repository).check_escalation(10)
        assert decision.needs_escalation is False

    @pytest.mark.asyncio
    async def test_just_above_threshold_fires(self, repository):
        repository.add_user(1)
        repository.add_transaction(10, amount_sent="10000.01")
        decision = await _evaluator(repository).check_escalation(10)
        assert decision.needs_escalation is True
        assert decision.reasons == ["High value transaction: $10000.01"]
        assert decision.escalate_to == EscalationRole.SUPER_ADMIN

    @pytest.mark.asyncio
    async def test_amount_formatted_to_two_decimals(self, repository):
        repository.add_user(1)
        repository.add_transaction(10, amount_sent="25000")
        decision = await _evaluator(repository).check_escalation(10)
        assert decision.reasons == ["High value transaction: $25000.00"]

    @pytest.mark.asyncio
    async def test_configured_threshold(self, repository):
        repository.add_user(1)
        repository.add_transaction(10, amount_sent="5000.50")
        config = EscalationConfig(high_value_threshold=Decimal("5000"))
        decision = await _evaluator(repository, config).check_escalation(10)
        assert decision.reasons == ["High value transaction: $5000.50"]


class TestHighFraudScoreRule:
    @pytest.mark.asyncio
    async def test_score_81_fires_alone(self, repository):
        repository.add_user(1, fraud_score=81)
        repository.add_transaction(10, amount_sent="0")
        decision = await _evaluator(repository).check_escalation(10)
        assert decision.needs_escalation is True
        assert decision.reasons == ["High fraud score: 81"]
        assert decision.escalate_to == EscalationRole.COMPLIANCE_OFFICER

    @pytest.mark.asyncio
    async def test_score_80_does_not_fire(self, repository):
        repository.add_user(1, fraud_score=80)
        repository.add_transaction(10)
        decision = await _evaluator(repository).check_escalation(10)
        assert decision.needs_escalation is False

    @pytest.mark.asyncio
    async def test_missing_user_score_treated_as_zero(self, repository):
        repository.add_transaction(10, user_id=None)
        decision = await _evaluator(repository).check_escalation(10)
        assert decision.needs_escalation is False


class TestAmlAlertRule:
    @pytest.mark.asyncio
    async def test_open_high_alert_fires(self, repository):
        repository.add_user(1)
        repository.add_transaction(10)
        repository.add_aml_alert(10, severity="HIGH", status="OPEN")
        decision = await _evaluator(repository).check_escalation(10)
        assert decision.reasons == ["High severity AML alert detected"]
        assert decision.escalate_to == EscalationRole.COMPLIANCE_OFFICER

    @pytest.mark.asyncio
    async def test_alert_on_other_transaction_ignored(self, repository):
        repository.add_user(1)
        repository.add_transaction(10)
        repository.add_aml_alert(11, severity="HIGH", status="OPEN")
        decision = await _evaluator(repository).check_escalation(10)
        assert decision.needs_escalation is False

    @pytest.mark.asyncio
    async def test_unavailable_store_treated_as_no_alerts(self, repository):
        repository.add_user(1, fraud_score=90)
        repository.add_transaction(10)
        repository.aml_store_available = False
        decision = await _evaluator(repository).check_escalation(10)
        assert decision.reasons == ["High fraud score: 90"]
        assert repository.aml_queries == 1

    @pytest.mark.asyncio
    async def test_other_lookup_errors_propagate(self, repository):
        repository.add_user(1)
        repository.add_transaction(10, amount_sent="20000")
        repository.aml_error = ConnectionError("connection reset")
        with pytest.raises(ConnectionError):
            await _evaluator(repository).check_escalation(10)

    @pytest.mark.asyncio
    async def test_disabled_capability_skips_lookup(self, repository):
        repository.add_user(1)
        repository.add_transaction(10)
        repository.add_aml_alert(10)
        config = EscalationConfig(aml_alerts_enabled=False)
        decision = await _evaluator(repository, config).check_escalation(10)
        assert decision.needs_escalation is False
        assert repository.aml_queries == 0


class TestRuleCombination:
    @pytest.mark.asyncio
    async def test_high_value_and_aml_alert(self, repository):
        repository.add_user(1)
        repository.add_transaction(10, amount_sent="20000")
        repository.add_aml_alert(10)
        decision = await _evaluator(repository).check_escalation(10)
        assert decision.reasons == [
            "High value transaction: $20000.00",
            "High severity AML alert detected",
        ]
        assert decision.escalate_to == EscalationRole.COMPLIANCE_OFFICER

    @pytest.mark.asyncio
    async def test_all_rules_fire_in_order(self, repository):
        repository.add_user(1, fraud_score=95)
        repository.add_transaction(10, amount_sent="15000")
        repository.add_aml_alert(10)
        decision = await _evaluator(repository).check_escalation(10)
        assert decision.reasons == [
            "High value transaction: $15000.00",
            "High fraud score: 95",
            "High severity AML alert detected",
        ]
        assert decision.categories == [
            EscalationReason.HIGH_VALUE,
            EscalationReason.HIGH_FRAUD_SCORE,
            EscalationReason.AML_ALERT,
        ]
        assert decision.escalate_to == EscalationRole.COMPLIANCE_OFFICER

    @pytest.mark.asyncio
    async def test_last_triggered_rule_sets_role(self, repository):
        # Reversed order: the high-value rule runs last and its role wins
        repository.add_user(1, fraud_score=95)
        repository.add_transaction(10, amount_sent="15000")
        rules = list(reversed(ESCALATION_RULES))
        decision = await EscalationEvaluator(repository, CONFIG, rules=rules).check_escalation(10)
        assert decision.escalate_to == EscalationRole.SUPER_ADMIN
        assert decision.reasons[0] == "High fraud score: 95"
        assert decision.categories == [EscalationReason.HIGH_FRAUD_SCORE, EscalationReason.HIGH_VALUE]

    def test_rule_order(self):
        assert [r.rule_id for r in ESCALATION_RULES] == [
            "high_value_transaction",
            "high_fraud_score",
            "open_high_aml_alert",
        ]
        assert isinstance(ESCALATION_RULES[0], HighValueRule)
