from rest_framework import serializers

from .models import Post, Reply


class ReplySerializer(serializers.ModelSerializer):
    author = serializers.SerializerMethodField()

    class Meta:
        model = Reply
        fields = ["id", "post_id", "author", "body", "html", "created_at"]

    def get_author(self, obj):
        return obj.author.username if obj.author_id else None


class PostSerializer(serializers.ModelSerializer):
    author = serializers.CharField(source="author_username", read_only=True)
    gravatar_url = serializers.CharField(read_only=True)
    tags = serializers.SerializerMethodField()

    class Meta:
        model = Post
        fields = [
            "id",
            "unversion_id",
            "version_number",
            "type",
            "title",
            "excerpt",
            "html",
            "author",
            "gravatar_url",
            "tags",
            "publishing_date",
            "meta_json",
            "updated_at",
        ]
        read_only_fields = fields

    def get_tags(self, obj):
        return obj.tags.names()
