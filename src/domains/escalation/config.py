"""Escalation rule configuration with sensible defaults."""

import os
from dataclasses import dataclass
from decimal import Decimal


@dataclass
class EscalationConfig:
    # Strictly greater-than: a transaction of exactly this amount does not escalate
    high_value_threshold: Decimal = Decimal("10000")
    fraud_score_threshold: int = 80
    aml_alerts_enabled: bool = True
    history_page_limit: int = 100

    @classmethod
    def from_env(cls) -> "EscalationConfig":
        """Load config with env var overrides. Env vars use ESCALATION_ prefix."""
        config = cls()

        if v := os.getenv("ESCALATION_HIGH_VALUE_THRESHOLD"):
            config.high_value_threshold = Decimal(v)
        if v := os.getenv("ESCALATION_FRAUD_SCORE_THRESHOLD"):
            config.fraud_score_threshold = int(v)
        if v := os.getenv("ESCALATION_AML_ALERTS_ENABLED"):
            config.aml_alerts_enabled = v.strip().lower() in ("1", "true", "yes", "on")
        if v := os.getenv("ESCALATION_HISTORY_PAGE_LIMIT"):
            config.history_page_limit = int(v)

        return config


# Module-level default instance
default_config = EscalationConfig()
