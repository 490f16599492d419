from django.contrib import admin
from django.contrib.auth import get_user_model
from django.test import RequestFactory, TestCase

from publishing.models import Post


class PostAdminTests(TestCase):
    def setUp(self):
        self.model_admin = admin.site._registry[Post]
        self.request = RequestFactory().get("/admin/publishing/post/")
        self.request.user = get_user_model().objects.create_superuser("root", "root@example.com", "pass")

    def test_lifecycle_fields_are_read_only(self):
        readonly = self.model_admin.get_readonly_fields(self.request)
        for field in ("state", "previous_state", "moderator", "dustman", "deleted_at"):
            self.assertIn(field, readonly)

    def test_only_the_builtin_delete_action_is_offered(self):
        self.assertEqual(list(self.model_admin.get_actions(self.request)), ["delete_selected"])
