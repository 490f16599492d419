import logging

import redis
from rest_framework import viewsets
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .counters import HITS, Counters
from .models import Post
from .serializers import PostSerializer
from .versioning import CURRENT

logger = logging.getLogger(__name__)


class PostViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = PostSerializer
    permission_classes = [AllowAny]
    lookup_field = "unversion_id"

    def get_queryset(self):
        qs = Post.objects.filter(state=CURRENT).select_related("author")
        post_type = self.request.query_params.get("type")
        if post_type:
            qs = qs.filter(type=post_type)
        return qs

    def retrieve(self, request, *args, **kwargs):
        post = self.get_object()
        data = dict(self.get_serializer(post).data)
        try:
            counters = Counters()
            counters.increment(post.unversion_id, HITS)
            data["counters"] = counters.get(post.unversion_id)
        except redis.RedisError as exc:
            logger.warning("counters unavailable for %s: %s", post.unversion_id, exc)
        return Response(data)
