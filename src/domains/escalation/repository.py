"""Database access for the escalation workflow.

The evaluator, recorder and reader depend on the ``EscalationRepository``
protocol; ``SqlEscalationRepository`` implements it over an ``AsyncSession``
owned by the caller.
"""

from typing import Protocol

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models import AmlAlert as AmlAlertDB
from src.db.models import AuditLog as AuditLogDB
from src.db.models import Transaction as TransactionDB
from src.db.models import User as UserDB

from .exceptions import (
    AmlAlertStoreUnavailableError,
    TransactionNotFoundError,
    is_undefined_table_error,
)
from .models import AmlSeverity, AmlStatus, AuditEntry, TransactionRiskSnapshot

logger = structlog.get_logger()


class EscalationRepository(Protocol):
    async def get_transaction_snapshot(
        self, transaction_id: int
    ) -> TransactionRiskSnapshot | None: ...

    async def has_open_high_aml_alert(self, transaction_id: int) -> bool:
        """Raise AmlAlertStoreUnavailableError when the alert table is missing."""
        ...

    async def set_admin_notes(self, transaction_id: int, notes: str) -> str | None:
        """Overwrite the notes and return the previous value."""
        ...

    async def append_audit_entry(
        self,
        *,
        admin_id: int,
        action: str,
        entity: str,
        entity_id: str | None,
        old_value: dict | None = None,
        new_value: dict | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> None: ...

    async def list_audit_entries(
        self,
        *,
        action: str,
        entity_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[AuditEntry], int]: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class SqlEscalationRepository:
    """EscalationRepository backed by SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_transaction_snapshot(self, transaction_id: int) -> TransactionRiskSnapshot | None:
        stmt = (
            select(
                TransactionDB.id,
                TransactionDB.amount_sent,
                TransactionDB.user_id,
                TransactionDB.admin_notes,
                UserDB.fraud_score,
            )
            .outerjoin(UserDB, UserDB.id == TransactionDB.user_id)
            .where(TransactionDB.id == transaction_id)
        )
        result = await self._session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            return None

        return TransactionRiskSnapshot(
            transaction_id=row.id,
            amount_sent=row.amount_sent,
            user_id=row.user_id,
            admin_notes=row.admin_notes,
            fraud_score=row.fraud_score,
        )

    async def has_open_high_aml_alert(self, transaction_id: int) -> bool:
        stmt = (
            select(AmlAlertDB.id)
            .where(
                AmlAlertDB.transaction_id == transaction_id,
                AmlAlertDB.severity == AmlSeverity.HIGH.value,
                AmlAlertDB.status == AmlStatus.OPEN.value,
            )
            .limit(1)
        )
        # Savepoint so a missing table does not abort the surrounding transaction
        try:
            async with self._session.begin_nested():
                result = await self._session.execute(stmt)
                return result.first() is not None
        except DBAPIError as exc:
            if is_undefined_table_error(exc):
                raise AmlAlertStoreUnavailableError(str(exc.orig)) from exc
            raise

    async def set_admin_notes(self, transaction_id: int, notes: str) -> str | None:
        transaction = await self._session.get(TransactionDB, transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)

        previous = transaction.admin_notes
        transaction.admin_notes = notes
        await self._session.flush()
        return previous

    async def append_audit_entry(
        self,
        *,
        admin_id: int,
        action: str,
        entity: str,
        entity_id: str | None,
        old_value: dict | None = None,
        new_value: dict | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        self._session.add(
            AuditLogDB(
                admin_id=admin_id,
                action=action,
                entity=entity,
                entity_id=entity_id,
                old_value=old_value,
                new_value=new_value,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        )
        await self._session.flush()

    async def list_audit_entries(
        self,
        *,
        action: str,
        entity_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[AuditEntry], int]:
        stmt = select(AuditLogDB).where(AuditLogDB.action == action)
        count_stmt = select(func.count()).select_from(AuditLogDB).where(AuditLogDB.action == action)

        if entity_id is not None:
            stmt = stmt.where(AuditLogDB.entity_id == entity_id)
            count_stmt = count_stmt.where(AuditLogDB.entity_id == entity_id)

        total_result = await self._session.execute(count_stmt)
        total = total_result.scalar_one()

        stmt = stmt.order_by(AuditLogDB.created_at.desc(), AuditLogDB.id.desc())
        stmt = stmt.offset(offset).limit(limit)
        result = await self._session.execute(stmt)
        entries = [AuditEntry.model_validate(row) for row in result.scalars().all()]

        return entries, total

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()
