"""
Core model mixins for reusable model functionality.

These mixins provide common fields and behaviors that can be shared across
the tenant and category models. Each mixin is composable and can be used
individually or in combination with the others.

Available mixins:
- TimestampedMixin: Automatic created_at and updated_at fields
- NamedModelMixin: Standard name field with __str__ method
- DescribedModelMixin: Optional description field
- ActivatableMixin: is_active flag for soft deactivation
- AuditableMixin: User tracking for creation and modification

Usage:
    class MyModel(TimestampedMixin, NamedModelMixin):
        extra_field = models.CharField(max_length=100)

        class Meta:
            app_label = 'myapp'
"""

from django.conf import settings
from django.db import models


class TimestampedMixin(models.Model):
    """
    Mixin to add automatic timestamp tracking to models.

    Provides:
    - created_at: Automatically set when object is first created (indexed)
    - updated_at: Automatically updated every time object is saved (indexed)

    created_at also serves as the last tie-breaker when listing categories,
    matching the order in which they were appended.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when the object was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        db_index=True,
        help_text="Timestamp when the object was last modified",
    )

    class Meta:
        abstract = True


class NamedModelMixin(models.Model):
    """
    Mixin to add a standardized name field with __str__ method.

    Provides:
    - name: Required CharField with 100 character limit
    - __str__: Returns the name of the object
    """

    name = models.CharField(max_length=100, help_text="Name of the object")

    def __str__(self):
        return self.name

    class Meta:
        abstract = True


class DescribedModelMixin(models.Model):
    """Mixin to add an optional description field to models."""

    description = models.TextField(
        blank=True, default="", help_text="Optional detailed description"
    )

    class Meta:
        abstract = True


class ActivatableMixin(models.Model):
    """
    Mixin to add an activation flag to models.

    Deactivated objects stay in place (and keep their position among their
    siblings) but are hidden from public listings.
    """

    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Whether this object is shown on public pages",
    )

    class Meta:
        abstract = True


class AuditableMixin(models.Model):
    """
    Mixin to add user audit tracking to models.

    Provides:
    - created_by: Optional ForeignKey to User who created the object
    - modified_by: Optional ForeignKey to User who last modified the object
    - save(): Enhanced save method that accepts 'user' parameter for automatic tracking

    Usage:
        obj.save(user=request.user)  # Automatically sets modified_by

    Note that queryset.update() and bulk_update() bypass save(), so reorder
    commits do not touch modified_by.
    """

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="%(app_label)s_%(class)s_created",
        null=True,
        blank=True,
        help_text="User who created this object",
    )
    modified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="%(app_label)s_%(class)s_modified",
        null=True,
        blank=True,
        help_text="User who last modified this object",
    )

    def save(self, *args, **kwargs):
        """
        Enhanced save method with automatic user tracking.

        Args:
            user: User instance to set as modified_by (and created_by for new objects)
            *args, **kwargs: Standard save arguments
        """
        user = kwargs.pop("user", None)

        if user and hasattr(user, "pk") and user.pk:
            self.modified_by = user

            # created_by only for new objects
            if self._state.adding and not self.created_by_id:
                self.created_by = user

        super().save(*args, **kwargs)

    class Meta:
        abstract = True
