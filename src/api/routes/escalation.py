"""Transaction escalation endpoints for the admin back office."""

import structlog
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.database import get_session
from src.domains.escalation.config import EscalationConfig
from src.domains.escalation.evaluator import EscalationEvaluator
from src.domains.escalation.models import EscalateRequest, EscalationReason
from src.domains.escalation.reader import EscalationReader
from src.domains.escalation.recorder import EscalationRecorder
from src.domains.escalation.repository import EscalationRepository, SqlEscalationRepository

logger = structlog.get_logger()
router = APIRouter(prefix="/api/v1", tags=["escalation"])

_config = EscalationConfig.from_env()


async def get_repository(
    session: AsyncSession = Depends(get_session),  # noqa: B008
) -> EscalationRepository:
    return SqlEscalationRepository(session)


def get_config() -> EscalationConfig:
    return _config


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else None


@router.get("/transactions/{transaction_id}/escalation/check")
async def check_escalation(
    transaction_id: int,
    repository: EscalationRepository = Depends(get_repository),  # noqa: B008
    config: EscalationConfig = Depends(get_config),  # noqa: B008
) -> dict:
    decision = await EscalationEvaluator(repository, config).check_escalation(transaction_id)
    return {
        "transaction_id": transaction_id,
        "needs_escalation": decision.needs_escalation,
        "reasons": decision.reasons,
        "categories": [c.value for c in decision.categories],
        "escalate_to": decision.escalate_to.value if decision.escalate_to else None,
    }


@router.post("/transactions/{transaction_id}/escalate")
async def escalate_transaction(
    transaction_id: int,
    body: EscalateRequest,
    request: Request,
    repository: EscalationRepository = Depends(get_repository),  # noqa: B008
    config: EscalationConfig = Depends(get_config),  # noqa: B008
) -> dict:
    """Escalate a transaction.

    With explicit ``reasons`` and ``escalate_to`` the escalation is recorded as
    given (manual review). Otherwise the evaluator decides, and nothing is
    written when no rule fires.
    """
    if (body.reasons is None) != (body.escalate_to is None):
        raise ValueError("reasons and escalate_to must be supplied together")

    if body.reasons is not None:
        reasons = body.reasons
        escalate_to = body.escalate_to
        categories = [EscalationReason.MANUAL_REVIEW]
        manual = True
        logger.info(
            "manual_escalation_requested",
            transaction_id=transaction_id,
            admin_id=body.admin_id,
            reason_category=EscalationReason.MANUAL_REVIEW.value,
        )
    else:
        decision = await EscalationEvaluator(repository, config).check_escalation(transaction_id)
        if not decision.needs_escalation:
            return {
                "transaction_id": transaction_id,
                "escalated": False,
                "reasons": [],
                "categories": [],
                "escalate_to": None,
            }
        reasons = decision.reasons
        escalate_to = decision.escalate_to
        categories = decision.categories
        manual = False

    await EscalationRecorder(repository).escalate_transaction(
        transaction_id,
        reasons,
        escalated_by=body.admin_id,
        escalate_to=escalate_to,
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )

    return {
        "transaction_id": transaction_id,
        "escalated": True,
        "manual": manual,
        "reasons": reasons,
        "categories": [c.value for c in categories],
        "escalate_to": escalate_to.value,
    }


@router.get("/transactions/{transaction_id}/escalation")
async def get_escalation_info(
    transaction_id: int,
    repository: EscalationRepository = Depends(get_repository),  # noqa: B008
) -> dict:
    info = await EscalationReader(repository).get_escalation_info(transaction_id)
    return {
        "transaction_id": transaction_id,
        "is_escalated": info.is_escalated,
        "reasons": info.reasons,
        "escalate_to": info.escalate_to,
    }


@router.get("/escalations")
async def list_escalations(
    repository: EscalationRepository = Depends(get_repository),  # noqa: B008
    config: EscalationConfig = Depends(get_config),  # noqa: B008
    transaction_id: int | None = None,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> dict:
    limit = min(limit, config.history_page_limit)
    entries, total = await EscalationReader(repository).list_escalations(
        transaction_id=transaction_id, limit=limit, offset=offset
    )
    return {
        "items": [
            {
                "id": e.id,
                "admin_id": e.admin_id,
                "transaction_id": e.entity_id,
                "escalate_to": (e.new_value or {}).get("escalateTo"),
                "reasons": (e.new_value or {}).get("reasons", []),
                "ip_address": e.ip_address,
                "created_at": e.created_at.isoformat() if e.created_at else None,
            }
            for e in entries
        ],
        "total": total,
        "limit": limit,
        "offset": offset,
    }
