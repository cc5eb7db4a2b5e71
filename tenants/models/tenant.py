import uuid
from typing import Any, Optional, cast

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import QuerySet
from django.utils.text import slugify

from core.models import ActivatableMixin, NamedModelMixin, TimestampedMixin


class TenantManager(models.Manager):
    """Manager for Tenant with membership-aware querysets."""

    def visible_to_user(self, user: Optional[AbstractUser]) -> "QuerySet[Tenant]":
        """Return tenants the user may view.

        Superusers and staff see every tenant; everyone else only sees
        tenants they hold a membership in.
        """
        if not user or not user.is_authenticated:
            return self.none()
        if user.is_superuser or user.is_staff:
            return self.all()
        return self.filter(memberships__user=cast(Any, user)).distinct()


class Tenant(TimestampedMixin, NamedModelMixin, ActivatableMixin):
    """A site/brand whose categories are managed independently of all others."""

    name = models.CharField(  # type: ignore[var-annotated]
        max_length=200, help_text="Tenant name"
    )
    slug = models.SlugField(  # type: ignore[var-annotated]
        max_length=200,
        unique=True,
        blank=True,
        help_text="URL-friendly tenant identifier",
    )

    objects = TenantManager()

    class Meta:
        db_table = "tenants_tenant"
        ordering = ["name"]
        verbose_name = "Tenant"
        verbose_name_plural = "Tenants"

    def save(self, *args: Any, **kwargs: Any) -> None:
        """Save the tenant with auto-generated slug."""
        if not self.slug:
            self.slug = self._generate_unique_slug()
        super().save(*args, **kwargs)

    def _generate_unique_slug(self) -> str:
        base_slug = slugify(self.name) or "tenant"

        # Leave room for the suffix
        if len(base_slug) > 190:
            base_slug = base_slug[:190]

        counter = 0
        slug = base_slug
        while Tenant.objects.filter(slug=slug).exists():
            counter += 1
            if counter > 999:
                slug = f"{base_slug[:180]}-{uuid.uuid4().hex[:8]}"
                break
            slug = f"{base_slug}-{counter}"

        return slug

    def clean(self) -> None:
        """Validate the tenant data."""
        super().clean()
        if not self.name:
            raise ValidationError("Tenant name is required.")

    def get_user_role(self, user: Optional[AbstractUser]) -> Optional[str]:
        """Get user's role in this tenant.

        Args:
            user: The user to check permissions for

        Returns:
            'SUPERADMIN' for superusers, the membership role ('ADMIN',
            'EDITOR', 'VIEWER'), or None if the user is not a member
        """
        if not user or not user.is_authenticated:
            return None

        if user.is_superuser:
            return "SUPERADMIN"

        membership = self.memberships.filter(  # type: ignore[attr-defined]
            user=cast(Any, user)
        ).first()
        return membership.role if membership else None

    def has_role(self, user: Optional[AbstractUser], *roles: str) -> bool:
        """Check if user has any of the specified roles in this tenant."""
        user_role = self.get_user_role(user)
        return user_role in roles if user_role else False

    def can_view(self, user: Optional[AbstractUser]) -> bool:
        """Members of any role and staff can view the tenant's categories."""
        if user and user.is_authenticated and user.is_staff:
            return True
        return self.get_user_role(user) is not None

    def can_edit(self, user: Optional[AbstractUser]) -> bool:
        """Only administrators and editors may change the category tree."""
        return self.has_role(user, "SUPERADMIN", "ADMIN", "EDITOR")


class TenantMembership(models.Model):
    """Membership relationship between users and tenants."""

    ROLE_CHOICES = [
        ("ADMIN", "Administrator"),
        ("EDITOR", "Editor"),
        ("VIEWER", "Viewer"),
    ]

    tenant = models.ForeignKey(  # type: ignore[var-annotated]
        Tenant,
        on_delete=models.CASCADE,
        related_name="memberships",
        help_text="The tenant",
    )
    user = models.ForeignKey(  # type: ignore[var-annotated]
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="tenant_memberships",
        help_text="The user",
    )
    role = models.CharField(  # type: ignore[var-annotated]
        max_length=10,
        choices=ROLE_CHOICES,
        help_text="The user's role in the tenant",
    )
    joined_at = models.DateTimeField(auto_now_add=True)  # type: ignore[var-annotated]

    class Meta:
        db_table = "tenants_membership"
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "user"], name="unique_tenant_user_membership"
            ),
        ]
        ordering = ["tenant", "role", "user__username"]
        verbose_name = "Tenant Membership"
        verbose_name_plural = "Tenant Memberships"

    def __str__(self) -> str:
        """Return a string representation of the membership."""
        return f"{self.user.username} - {self.tenant.name} ({self.role})"
