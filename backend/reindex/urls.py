from django.contrib import admin
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from publishing import api
from publishing.views import PostViewSet

router = DefaultRouter()
router.register(r"posts", PostViewSet, basename="post")

urlpatterns = [
    path("admin/", admin.site.urls),
    path("accounts/", include("allauth.urls")),
    path("api/", include(router.urls)),
    path("api/me", api.me, name="api-me"),
    path("api/impersonation", api.impersonation, name="api-impersonation"),
    path("api/drafts", api.posts_collection, name="api-posts-create"),
    path("api/revisions/<str:revision_id>", api.revision_detail, name="api-revision-detail"),
    path("api/revisions/<str:revision_id>/edit", api.revision_edit, name="api-revision-edit"),
    path("api/revisions/<str:revision_id>/<str:action>", api.revision_transition, name="api-revision-transition"),
    path("api/documents/<str:unversion_id>/versions", api.post_versions, name="api-post-versions"),
    path("api/documents/<str:unversion_id>/star", api.post_star, name="api-post-star"),
    path("api/documents/<str:unversion_id>/subscription", api.post_subscription, name="api-post-subscription"),
    path("api/documents/<str:unversion_id>/replies", api.post_replies, name="api-post-replies"),
    path("api/members/<str:username>", api.member_detail, name="api-member-detail"),
    path("api/members/<str:username>/follow", api.member_follow, name="api-member-follow"),
    path("api/members/<str:username>/roles/<str:role>", api.member_roles, name="api-member-roles"),
]
