"""Escalation recorder: writes the escalation onto the transaction and the audit log."""

import structlog

from .models import AuditAction, EscalationRole
from .notes import format_escalation_note
from .repository import EscalationRepository

logger = structlog.get_logger()

TRANSACTION_ENTITY = "Transaction"


class EscalationRecorder:
    def __init__(self, repository: EscalationRepository) -> None:
        self._repository = repository

    async def escalate_transaction(
        self,
        transaction_id: int,
        reasons: list[str],
        escalated_by: int,
        escalate_to: EscalationRole | str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        """Mark a transaction as escalated.

        Replaces the transaction's admin notes with the escalation marker and
        appends a TRANSACTION_ESCALATED audit entry. Both writes are committed
        together; on failure the session is rolled back and the error re-raised.
        """
        role = EscalationRole(escalate_to)
        notes = format_escalation_note(role, reasons)

        try:
            previous_notes = await self._repository.set_admin_notes(transaction_id, notes)
            await self._repository.append_audit_entry(
                admin_id=escalated_by,
                action=AuditAction.TRANSACTION_ESCALATED.value,
                entity=TRANSACTION_ENTITY,
                entity_id=str(transaction_id),
                old_value={"adminNotes": previous_notes},
                new_value={"escalateTo": role.value, "reasons": list(reasons)},
                ip_address=ip_address,
                user_agent=user_agent,
            )
            await self._repository.commit()
        except Exception:
            await self._repository.rollback()
            logger.exception(
                "transaction_escalation_failed",
                transaction_id=transaction_id,
                escalated_by=escalated_by,
            )
            raise

        logger.info(
            "transaction_escalated",
            transaction_id=transaction_id,
            escalated_by=escalated_by,
            escalate_to=role.value,
            reasons=reasons,
        )
