from ..models import Follower
from .decorator import BRONZE, GOLD, ThresholdDecorator


class Popular(ThresholdDecorator):
    name = "popular"
    description = "Followed by 10 members."
    metal = BRONZE
    messages = ("follow",)
    threshold = 10

    def recipient(self, data):
        return data.get("member_id")

    def count(self, data):
        return Follower.objects.filter(member_id=data.get("member_id")).count()


class Famous(Popular):
    name = "famous"
    description = "Followed by 100 members."
    metal = GOLD
    threshold = 100
