"""Encoding of escalation state inside a transaction's admin notes.

An escalated transaction carries ``⚠️ ESCALATED to {role}: {reasons}`` in its
notes, with the reasons joined by ``"; "``. Other annotations share the same
field, so the marker overwrites whatever was there before.
"""

import re

from .models import EscalationInfo, EscalationRole

ESCALATION_MARKER = "ESCALATED"
REASON_SEPARATOR = "; "

_ESCALATION_PATTERN = re.compile(r"ESCALATED to (\w+): (.+)", re.ASCII)


def validate_reasons(reasons: list[str]) -> None:
    """Reject reasons that could not be split back out of the notes unchanged."""
    if not reasons:
        raise ValueError("At least one escalation reason is required")
    for reason in reasons:
        if not reason:
            raise ValueError("Escalation reasons must not be empty")
        if REASON_SEPARATOR in reason or "\n" in reason or "\r" in reason:
            raise ValueError(
                f"Escalation reason must not contain {REASON_SEPARATOR!r} "
                f"or line breaks: {reason!r}"
            )


def format_escalation_note(escalate_to: EscalationRole | str, reasons: list[str]) -> str:
    validate_reasons(reasons)
    role = EscalationRole(escalate_to)
    return f"⚠️ {ESCALATION_MARKER} to {role.value}: {REASON_SEPARATOR.join(reasons)}"


def parse_escalation_note(notes: str | None) -> EscalationInfo | None:
    """Decode escalation info from notes.

    Returns a negative ``EscalationInfo`` when the marker is absent and None when
    the marker is present but the notes do not match the expected shape.
    """
    if not notes or ESCALATION_MARKER not in notes:
        return EscalationInfo(is_escalated=False, reasons=[])

    match = _ESCALATION_PATTERN.search(notes)
    if match is None:
        return None

    return EscalationInfo(
        is_escalated=True,
        escalate_to=match.group(1),
        reasons=match.group(2).split(REASON_SEPARATOR),
    )
