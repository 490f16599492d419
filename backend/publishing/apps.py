from django.apps import AppConfig


class PublishingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "publishing"
    label = "publishing"

    def ready(self) -> None:
        # Registers every permission object on its role.
        from . import permissions  # noqa: F401
