"""
Serializers for the category API.

Wire keys are camelCase (``parentId``, ``tenantId``, ``isActive``) to match
the node format exchanged with commit gateways.
"""

from django.conf import settings
from rest_framework import serializers

from api.messages import ErrorMessages
from categories.models import Category, CategoryTranslation
from categories.services import CategoryService
from tenants.models import Tenant


class CategoryTranslationSerializer(serializers.ModelSerializer):
    """Per-language name and description."""

    lang = serializers.ChoiceField(choices=CategoryTranslation.LANG_CHOICES)

    class Meta:
        model = CategoryTranslation
        fields = ("lang", "name", "description")
        extra_kwargs = {"description": {"required": False, "allow_blank": True}}


class CategorySerializer(serializers.ModelSerializer):
    """Category with its position and translations."""

    tenantId = serializers.CharField(source="tenant_id", read_only=True)
    parentId = serializers.UUIDField(source="parent_id", read_only=True, allow_null=True)
    isActive = serializers.BooleanField(source="is_active", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)
    translations = CategoryTranslationSerializer(many=True, read_only=True)

    class Meta:
        model = Category
        fields = (
            "id",
            "tenantId",
            "parentId",
            "order",
            "name",
            "description",
            "color",
            "isActive",
            "translations",
            "createdAt",
            "updatedAt",
        )
        read_only_fields = fields


class CategoryDetailSerializer(CategorySerializer):
    """Category with its direct children in order."""

    children = serializers.SerializerMethodField()

    class Meta(CategorySerializer.Meta):
        fields = CategorySerializer.Meta.fields + ("children",)
        read_only_fields = fields

    def get_children(self, obj):
        return [
            {"id": str(child.pk), "name": child.name, "order": child.order}
            for child in obj.children.order_by("order", "created_at")
        ]


class CategoryCreateSerializer(serializers.Serializer):
    """Validate and create a category through CategoryService."""

    tenantId = serializers.PrimaryKeyRelatedField(
        source="tenant", queryset=Tenant.objects.all()
    )
    parentId = serializers.PrimaryKeyRelatedField(
        source="parent",
        queryset=Category.objects.all(),
        required=False,
        allow_null=True,
    )
    order = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    name = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    color = serializers.CharField(
        max_length=20, required=False, allow_blank=True, default=""
    )
    isActive = serializers.BooleanField(source="is_active", required=False, default=True)
    translations = CategoryTranslationSerializer(many=True, required=False)

    def validate(self, attrs):
        parent = attrs.get("parent")
        if parent is not None and parent.tenant_id != attrs["tenant"].pk:
            raise serializers.ValidationError(
                {"parentId": [ErrorMessages.PARENT_OTHER_TENANT]}
            )
        return attrs

    def create(self, validated_data):
        request = self.context.get("request")
        return CategoryService.create_category(
            tenant=validated_data.pop("tenant"),
            name=validated_data.pop("name"),
            parent=validated_data.pop("parent", None),
            order=validated_data.pop("order", None),
            translations=validated_data.pop("translations", None),
            user=request.user if request else None,
            **validated_data,
        )


class CategoryUpdateSerializer(serializers.Serializer):
    """
    Validate and apply category changes through CategoryService.

    Changing ``parentId`` or ``order`` repositions the category; the
    affected sibling groups are renumbered in the same transaction.
    """

    parentId = serializers.PrimaryKeyRelatedField(
        source="parent",
        queryset=Category.objects.all(),
        required=False,
        allow_null=True,
    )
    order = serializers.IntegerField(min_value=0, required=False)
    name = serializers.CharField(max_length=100, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    color = serializers.CharField(max_length=20, required=False, allow_blank=True)
    isActive = serializers.BooleanField(source="is_active", required=False)
    translations = CategoryTranslationSerializer(many=True, required=False)

    def validate(self, attrs):
        parent = attrs.get("parent")
        if parent is not None and parent.tenant_id != self.instance.tenant_id:
            raise serializers.ValidationError(
                {"parentId": [ErrorMessages.PARENT_OTHER_TENANT]}
            )
        return attrs

    def update(self, instance, validated_data):
        request = self.context.get("request")
        return CategoryService.update_category(
            instance,
            user=request.user if request else None,
            translations=validated_data.pop("translations", None),
            **validated_data,
        )


class ReorderPatchSerializer(serializers.Serializer):
    """One ``{id, parentId, order}`` entry of a reorder request."""

    id = serializers.CharField(max_length=64)
    parentId = serializers.CharField(max_length=64, allow_null=True, required=False)
    order = serializers.IntegerField(min_value=0)

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        value.setdefault("parentId", None)
        return value


class ReorderSerializer(serializers.Serializer):
    """Body of ``PUT /api/categories/reorder/``."""

    tenantId = serializers.IntegerField(min_value=1)
    updates = ReorderPatchSerializer(many=True, allow_empty=True)

    def validate_updates(self, value):
        limit = getattr(
            settings,
            "CATEGORY_MAX_REORDER_PATCHES",
            CategoryService.DEFAULT_MAX_REORDER_PATCHES,
        )
        if len(value) > limit:
            raise serializers.ValidationError(ErrorMessages.too_many_patches(limit))
        return value


class MoveSerializer(serializers.Serializer):
    """Body of ``POST /api/categories/<id>/move/``."""

    target = serializers.UUIDField()
