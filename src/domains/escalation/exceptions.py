"""Escalation domain exceptions."""

import re

from sqlalchemy.exc import DBAPIError

# PostgreSQL SQLSTATE for "relation does not exist"
UNDEFINED_TABLE_SQLSTATE = "42P01"

_UNDEFINED_TABLE_MESSAGE = re.compile(
    r"relation \S+ does not exist|no such table", re.IGNORECASE
)


class TransactionNotFoundError(LookupError):
    """The transaction to escalate does not exist."""

    def __init__(self, transaction_id: int) -> None:
        self.transaction_id = transaction_id
        super().__init__(f"Transaction {transaction_id} not found")


class AmlAlertStoreUnavailableError(Exception):
    """The AML alert table is not provisioned in this deployment."""


def is_undefined_table_error(exc: BaseException) -> bool:
    """Return True if a database error means the queried table is not provisioned.

    A driver-supplied SQLSTATE is authoritative. The message is only consulted
    when no code is available.
    """
    if not isinstance(exc, DBAPIError):
        return False

    orig = exc.orig
    for attr in ("sqlstate", "pgcode"):
        code = getattr(orig, attr, None)
        if code:
            return code == UNDEFINED_TABLE_SQLSTATE

    message = str(orig if orig is not None else exc)
    return bool(_UNDEFINED_TABLE_MESSAGE.search(message))
