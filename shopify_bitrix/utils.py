"""Utility helpers for the Shopify → Bitrix24 app."""

import logging
from typing import Any, NamedTuple, Optional

logger = logging.getLogger(__name__)


class StepResult(NamedTuple):
    """Outcome of a best-effort step.

    ``ok`` is ``False`` only when the step raised; ``error`` then holds the
    exception and ``value`` is ``None``.
    """

    ok: bool
    value: Any = None
    error: Optional[BaseException] = None


def best_effort(step, func, *args, **kwargs):
    """Run ``func`` and downgrade any exception to a log entry.

    Used for steps whose failure must never abort the surrounding flow
    (event recording, contact upsert, product rows).

    Args:
        step: Short description used in the log message, e.g.
            ``"contact upsert"``.
        func: Callable to run with ``*args`` and ``**kwargs``.

    Returns:
        StepResult: ``ok=True`` with the return value, or ``ok=False`` with
        the raised exception.

    Examples::

        >>> best_effort("divide", lambda: 1 / 0).ok
        False
    """
    try:
        value = func(*args, **kwargs)
    except Exception as exc:
        logger.exception("%s failed (non-blocking)", step)
        return StepResult(ok=False, error=exc)
    return StepResult(ok=True, value=value)
