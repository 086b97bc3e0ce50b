"""Read escalation state and history back out of the store."""

import structlog

from .models import AuditAction, AuditEntry, EscalationInfo
from .notes import parse_escalation_note
from .repository import EscalationRepository

logger = structlog.get_logger()


class EscalationReader:
    def __init__(self, repository: EscalationRepository) -> None:
        self._repository = repository

    async def get_escalation_info(self, transaction_id: int) -> EscalationInfo:
        snapshot = await self._repository.get_transaction_snapshot(transaction_id)
        notes = snapshot.admin_notes if snapshot else None

        info = parse_escalation_note(notes)
        if info is None:
            # Marker present but unparseable: report as not escalated
            logger.warning("escalation_notes_unparseable", transaction_id=transaction_id)
            return EscalationInfo(is_escalated=False, reasons=[])
        return info

    async def list_escalations(
        self,
        transaction_id: int | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[AuditEntry], int]:
        """Return TRANSACTION_ESCALATED audit entries, newest first, and the total count."""
        return await self._repository.list_audit_entries(
            action=AuditAction.TRANSACTION_ESCALATED.value,
            entity_id=str(transaction_id) if transaction_id is not None else None,
            limit=limit,
            offset=offset,
        )
