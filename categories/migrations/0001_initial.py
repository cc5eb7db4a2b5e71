import uuid

import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("tenants", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Category",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when the object was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        db_index=True,
                        help_text="Timestamp when the object was last modified",
                    ),
                ),
                ("name", models.CharField(help_text="Name of the object", max_length=100)),
                (
                    "description",
                    models.TextField(
                        blank=True, default="", help_text="Optional detailed description"
                    ),
                ),
                (
                    "is_active",
                    models.BooleanField(
                        db_index=True,
                        default=True,
                        help_text="Whether this object is shown on public pages",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "order",
                    models.PositiveIntegerField(
                        default=0, help_text="Position among siblings (0 = first)"
                    ),
                ),
                (
                    "color",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Display color, e.g. #FF6B6B",
                        max_length=20,
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who created this object",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="%(app_label)s_%(class)s_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "modified_by",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who last modified this object",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="%(app_label)s_%(class)s_modified",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "parent",
                    models.ForeignKey(
                        blank=True,
                        help_text="Parent category in the hierarchy",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="children",
                        to="categories.category",
                    ),
                ),
                (
                    "tenant",
                    models.ForeignKey(
                        help_text="The tenant this category belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="categories",
                        to="tenants.tenant",
                    ),
                ),
            ],
            options={
                "verbose_name": "Category",
                "verbose_name_plural": "Categories",
                "db_table": "categories_category",
                "ordering": ["order", "created_at"],
                "indexes": [
                    models.Index(
                        fields=["tenant", "parent", "order"],
                        name="categories_tree_order_idx",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="CategoryTranslation",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "lang",
                    models.CharField(
                        choices=[("hu", "Hungarian"), ("en", "English"), ("de", "German")],
                        max_length=5,
                    ),
                ),
                ("name", models.CharField(max_length=100)),
                ("description", models.TextField(blank=True, default="")),
                (
                    "category",
                    models.ForeignKey(
                        help_text="The translated category",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="translations",
                        to="categories.category",
                    ),
                ),
            ],
            options={
                "verbose_name": "Category Translation",
                "verbose_name_plural": "Category Translations",
                "db_table": "categories_translation",
                "ordering": ["category", "lang"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("category", "lang"),
                        name="unique_category_translation_lang",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="DragSession",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "state",
                    django_fsm.FSMField(
                        choices=[
                            ("idle", "Idle"),
                            ("dragging", "Dragging"),
                            ("hovering", "Hovering over target"),
                            ("committing", "Committing"),
                        ],
                        default="idle",
                        max_length=20,
                        protected=True,
                    ),
                ),
                ("tenant_id", models.CharField(blank=True, default="", max_length=64)),
                ("dragged_id", models.CharField(blank=True, default="", max_length=64)),
                ("target_id", models.CharField(blank=True, default="", max_length=64)),
            ],
            options={
                "db_table": "categories_drag_session",
                "managed": False,
            },
        ),
    ]
