from django.contrib import admin

from .models import Badge, Classification, Follower, Member, Post, PostEvent, Reply, RoleGrant, Star, Subscription, Tag


class RoleGrantInline(admin.TabularInline):
    model = RoleGrant
    extra = 0
    fields = ("role", "created_at")
    readonly_fields = ("created_at",)


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    list_display = ("username", "email", "confirmed", "created_at")
    list_filter = ("confirmed",)
    search_fields = ("username", "email", "first_name", "last_name")
    readonly_fields = ("id", "legacy_id", "created_at", "updated_at")
    inlines = [RoleGrantInline]


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ("title", "type", "state", "version_number", "author", "locked", "updated_at")
    list_filter = ("type", "state", "locked")
    search_fields = ("title", "unversion_id", "legacy_id")
    readonly_fields = (
        "id",
        "unversion_id",
        "version_number",
        "state",
        "previous_state",
        "moderator",
        "dustman",
        "deleted_at",
        "html",
        "excerpt",
        "created_at",
        "updated_at",
    )
    ordering = ("-updated_at",)


@admin.register(PostEvent)
class PostEventAdmin(admin.ModelAdmin):
    list_display = ("post_id", "event_type", "actor", "created_at")
    list_filter = ("event_type",)
    search_fields = ("post_id", "unversion_id")


@admin.register(Tag)
class TagAdmin(admin.ModelAdmin):
    list_display = ("name", "creator", "created_at")
    search_fields = ("name",)


@admin.register(Reply)
class ReplyAdmin(admin.ModelAdmin):
    list_display = ("post_id", "author", "created_at")
    search_fields = ("post_id", "body")


@admin.register(Badge)
class BadgeAdmin(admin.ModelAdmin):
    list_display = ("member", "name", "metal", "context_id", "created_at")
    list_filter = ("metal", "name")


admin.site.register(Classification)
admin.site.register(Follower)
admin.site.register(Star)
admin.site.register(Subscription)
