from ..models import Post, Reply
from ..versioning import APPROVED, CURRENT
from .decorator import BRONZE, SILVER, ThresholdDecorator


class Author(ThresholdDecorator):
    name = "author"
    description = "Published a first post."
    metal = BRONZE
    messages = ("approve",)
    threshold = 1

    def recipient(self, data):
        return data.get("author_id")

    def count(self, data):
        return (
            Post.objects.filter(author_id=data.get("author_id"), state__in=[CURRENT, APPROVED])
            .values("unversion_id")
            .distinct()
            .count()
        )


class Prolific(Author):
    name = "prolific"
    description = "Published 10 posts."
    metal = SILVER
    threshold = 10


class Commentator(ThresholdDecorator):
    name = "commentator"
    description = "Replied 10 times."
    metal = BRONZE
    messages = ("reply",)
    threshold = 10

    def recipient(self, data):
        return data.get("author_id")

    def count(self, data):
        return Reply.objects.filter(author_id=data.get("author_id")).count()
