# provenance/services/transactions.py

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from django.db import transaction

from provenance.problems import RequestValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def transact(label: str, func: Callable[..., T], *args, **kwargs) -> T:
    """
    Run func inside one database transaction.

    Any exception rolls back everything done inside func and is re-raised
    unchanged after being logged. Rejected requests log at INFO; anything
    else logs at WARNING.
    """
    logger.debug("Transaction start: %s", label)
    try:
        with transaction.atomic():
            result = func(*args, **kwargs)
    except RequestValidationError as exc:
        logger.info("Transaction rolled back: %s (%d problem(s))", label, len(exc.problems))
        raise
    except Exception as exc:
        logger.warning("Transaction rolled back: %s (%s: %s)", label, type(exc).__name__, exc)
        raise
    logger.debug("Transaction committed: %s", label)
    return result
