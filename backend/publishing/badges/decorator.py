import logging
from typing import Any, Dict, Optional, Sequence

logger = logging.getLogger(__name__)

BRONZE = "bronze"
SILVER = "silver"
GOLD = "gold"


class Decorator:
    """An observer awarding a badge when a domain event satisfies its rule.

    ``messages`` lists the events the decorator listens to. A badge is awarded
    once per member, or once per member and context (usually a post) when
    ``multiple`` is set.
    """

    name = ""
    description = ""
    metal = BRONZE
    messages: Sequence[str] = ()
    multiple = False

    def get_metal(self) -> str:
        return self.metal

    def get_messages(self) -> Sequence[str]:
        return self.messages

    def update(self, message: str, data: Dict[str, Any]) -> None:
        raise NotImplementedError

    def award(self, member_id: Any, context_id: str = ""):
        from ..models import Badge

        if not member_id:
            return None
        lookup = {"member_id": member_id, "name": self.name}
        if self.multiple:
            lookup["context_id"] = context_id or ""
        if Badge.objects.filter(**lookup).exists():
            return None
        badge = Badge.objects.create(metal=self.metal, **{"context_id": context_id or "", **lookup})
        logger.info("badge %s (%s) awarded to %s", self.name, self.metal, member_id)
        return badge


class ThresholdDecorator(Decorator):
    """Awards the badge once a counter reaches ``threshold``."""

    threshold = 1

    def recipient(self, data: Dict[str, Any]) -> Optional[Any]:
        raise NotImplementedError

    def count(self, data: Dict[str, Any]) -> int:
        raise NotImplementedError

    def context(self, data: Dict[str, Any]) -> str:
        return ""

    def update(self, message: str, data: Dict[str, Any]) -> None:
        member_id = self.recipient(data)
        if not member_id:
            return
        if self.count(data) >= self.threshold:
            self.award(member_id, self.context(data))
