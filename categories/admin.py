"""
Django admin interface for categories.

Parent and order are read-only once a category exists: repositioning goes
through CategoryService so sibling groups stay dense. New categories are
appended to their group through the same service.
"""

from typing import Optional

from django.contrib import admin
from django.db.models import QuerySet
from django.forms import ModelForm
from django.http import HttpRequest

from tenants.models import Tenant

from .models import Category, CategoryTranslation
from .services import CategoryService


class CategoryTranslationInline(admin.TabularInline):
    model = CategoryTranslation
    extra = 0
    fields = ["lang", "name", "description"]


class CategoryAdminForm(ModelForm):
    """Limit parent choices to the category's own tenant."""

    class Meta:
        model = Category
        fields = "__all__"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if "parent" not in self.fields:
            return

        tenant_id = self.data.get("tenant") or self.instance.tenant_id
        try:
            queryset = Category.objects.filter(tenant_id=int(tenant_id))
        except (TypeError, ValueError):
            queryset = Category.objects.all()
        if self.instance.pk:
            queryset = queryset.exclude(pk=self.instance.pk)
        self.fields["parent"].queryset = queryset


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    """Admin interface for categories with hierarchy display."""

    form = CategoryAdminForm
    list_display = [
        "get_hierarchy_display",
        "tenant",
        "order",
        "is_active",
        "updated_at",
    ]
    list_filter = ["tenant", "is_active"]
    search_fields = ["name", "description", "translations__name"]
    ordering = ["tenant", "parent", "order"]
    inlines = [CategoryTranslationInline]

    fieldsets = (
        ("Basic Information", {"fields": ("name", "description", "color", "is_active")}),
        ("Tenant & Hierarchy", {"fields": ("tenant", "parent", "order")}),
        (
            "Audit Information",
            {
                "fields": ("created_by", "modified_by", "created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )

    def get_readonly_fields(self, request: HttpRequest, obj: Optional[Category] = None):
        readonly = ["created_by", "modified_by", "created_at", "updated_at"]
        if obj is not None:
            readonly += ["tenant", "parent", "order"]
        return readonly

    def get_queryset(self, request: HttpRequest) -> QuerySet[Category]:
        qs = super().get_queryset(request).select_related("tenant", "parent")
        if request.user.is_superuser:
            return qs
        return qs.filter(tenant__in=Tenant.objects.visible_to_user(request.user))

    @admin.display(description="Name", ordering="name")
    def get_hierarchy_display(self, obj: Category) -> str:
        """Display the name indented by hierarchy depth."""
        depth = obj.get_depth()
        indent = "-- " * depth
        return f"{indent}{obj.name}"

    def save_model(
        self, request: HttpRequest, obj: Category, form: ModelForm, change: bool
    ) -> None:
        if change:
            obj.save(user=request.user)
            return

        created = CategoryService.create_category(
            tenant=obj.tenant,
            name=obj.name,
            parent=obj.parent,
            order=form.cleaned_data.get("order"),
            user=request.user,
            description=obj.description,
            color=obj.color,
            is_active=obj.is_active,
        )
        # The inline formsets are saved against form.instance
        obj.pk = created.pk
        obj.order = created.order
        obj._state.adding = False
        obj._state.db = created._state.db

    def delete_model(self, request: HttpRequest, obj: Category) -> None:
        CategoryService.delete_category(obj, user=request.user)

    def delete_queryset(self, request: HttpRequest, queryset: QuerySet[Category]) -> None:
        for category in queryset:
            CategoryService.delete_category(category, user=request.user)

    def has_change_permission(
        self, request: HttpRequest, obj: Optional[Category] = None
    ) -> bool:
        if obj is None or request.user.is_superuser:
            return super().has_change_permission(request, obj)
        return obj.can_edit(request.user)

    def has_delete_permission(
        self, request: HttpRequest, obj: Optional[Category] = None
    ) -> bool:
        if obj is None or request.user.is_superuser:
            return super().has_delete_permission(request, obj)
        return obj.can_edit(request.user)
