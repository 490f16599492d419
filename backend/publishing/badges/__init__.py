"""Badge decorators and the dispatcher feeding them domain events."""
import logging
from typing import Any, Dict, List

from django.conf import settings

from .decorator import BRONZE, GOLD, SILVER, Decorator

logger = logging.getLogger(__name__)

__all__ = ["BRONZE", "GOLD", "SILVER", "Decorator", "decorators", "dispatch", "notify"]


def decorators() -> List[Decorator]:
    from .social import Famous, Popular
    from .star import Beloved, Idolized
    from .writing import Author, Commentator, Prolific

    return [Beloved(), Idolized(), Popular(), Famous(), Author(), Prolific(), Commentator()]


def dispatch(message: str, data: Dict[str, Any]) -> int:
    """Runs every decorator listening to ``message``; returns how many ran."""
    ran = 0
    for decorator in decorators():
        if message not in decorator.get_messages():
            continue
        try:
            decorator.update(message, data)
        except Exception:
            logger.exception("badge %s failed on %s", decorator.name, message)
            continue
        ran += 1
    return ran


def notify(message: str, data: Dict[str, Any]) -> None:
    if getattr(settings, "REINDEX_ASYNC_JOBS_MODE", "inprocess") == "redis":
        from ..jobs import enqueue

        enqueue("publishing.badges.dispatch", message, data)
        return
    dispatch(message, data)
