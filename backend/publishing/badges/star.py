from ..models import Star
from .decorator import GOLD, SILVER, ThresholdDecorator


class Beloved(ThresholdDecorator):
    """Wrote a post starred by 10 users. Awarded multiple times."""

    name = "beloved"
    description = "Wrote a post starred by 10 users."
    metal = SILVER
    messages = ("star",)
    multiple = True
    threshold = 10

    def recipient(self, data):
        return data.get("author_id")

    def count(self, data):
        return Star.objects.filter(item_id=data.get("item_id")).count()

    def context(self, data):
        return str(data.get("item_id") or "")


class Idolized(Beloved):
    """Wrote a post starred by 25 users. Awarded multiple times."""

    name = "idolized"
    description = "Wrote a post starred by 25 users."
    metal = GOLD
    threshold = 25
