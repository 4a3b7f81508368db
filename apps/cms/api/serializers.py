from rest_framework import serializers

from apps.cms.models import Block, Page


class PageSerializer(serializers.ModelSerializer):
    site = serializers.SlugRelatedField(slug_field="name", read_only=True)
    is_hybrid = serializers.BooleanField(read_only=True)

    class Meta:
        model = Page
        fields = [
            "id",
            "site",
            "name",
            "route_name",
            "slug",
            "url",
            "template_code",
            "ttl",
            "decorate",
            "enabled",
            "login_required",
            "is_hybrid",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BlockTreeSerializer(serializers.ModelSerializer):
    """Block with its already loaded children, recursively."""

    children = serializers.SerializerMethodField()

    class Meta:
        model = Block
        fields = ["id", "type", "settings", "position", "enabled", "parent", "children", "updated_at"]
        read_only_fields = fields

    def get_children(self, obj):
        return BlockTreeSerializer(obj.loaded_children, many=True, context=self.context).data
