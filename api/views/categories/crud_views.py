"""
Category API CRUD views.

This module provides list, create, detail, update and delete endpoints for
a tenant's categories. Creating, repositioning and deleting all go through
CategoryService so sibling orders stay dense.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from api.errors import APIError, SecurityResponseHelper, handle_common_api_exceptions
from api.messages import ErrorMessages
from api.serializers import (
    CategoryCreateSerializer,
    CategoryDetailSerializer,
    CategorySerializer,
    CategoryUpdateSerializer,
)
from categories.models import Category
from categories.services import CategoryService
from tenants.models import Tenant

logger = logging.getLogger(__name__)


class CategoryPermissionMixin:
    """Mixin to standardize tenant permission checking across category views."""

    def get_tenant(self, tenant_id, user):
        """
        Get a tenant the user may view.

        Returns:
            Tuple of (tenant, None) or (None, 404 response)
        """
        return SecurityResponseHelper.safe_get_or_404(
            Tenant.objects,
            user,
            lambda u, tenant: tenant.can_view(u),
            pk=tenant_id,
        )

    def check_edit_permission(self, tenant, user):
        """
        Return None if the user may change the tenant's categories.

        Viewers get 403: the tenant's existence is already known to them.
        """
        if not tenant.can_edit(user):
            return APIError.create_permission_denied_response()
        return None


class CategoryListCreateAPIView(APIView, CategoryPermissionMixin):
    """
    API view for listing and creating categories.

    GET: List a tenant's categories, roots first, then by order
    POST: Create a category (appended, or inserted at ``order``)
    """

    def get(self, request):
        """
        List categories as nodes.

        Query parameters:
        - tenant (required): Tenant ID to list
        """
        tenant_id = request.GET.get("tenant")
        if not tenant_id:
            return APIError.create_validation_error_response(
                {"tenant": [ErrorMessages.TENANT_REQUIRED]}
            )

        try:
            tenant_id = int(tenant_id)
        except ValueError:
            return APIError.create_validation_error_response(
                {"tenant": [ErrorMessages.INVALID_TENANT]}
            )

        tenant, error_response = self.get_tenant(tenant_id, request.user)
        if error_response:
            return error_response

        nodes = CategoryService.list_nodes(tenant.pk)
        return Response([node.to_dict() for node in nodes])

    @handle_common_api_exceptions
    def post(self, request):
        """Create a new category."""
        tenant_id = request.data.get("tenantId")
        if not tenant_id:
            return APIError.create_validation_error_response(
                {"tenantId": [ErrorMessages.TENANT_REQUIRED]}
            )

        tenant, error_response = self.get_tenant(tenant_id, request.user)
        if error_response:
            return error_response

        permission_error = self.check_edit_permission(tenant, request.user)
        if permission_error:
            return permission_error

        serializer = CategoryCreateSerializer(
            data=request.data, context={"request": request}
        )
        if not serializer.is_valid():
            return APIError.create_validation_error_response(serializer.errors)

        category = serializer.save()
        return Response(
            CategorySerializer(category, context={"request": request}).data,
            status=status.HTTP_201_CREATED,
        )


class CategoryDetailAPIView(APIView, CategoryPermissionMixin):
    """
    API view for category detail, update, and delete operations.

    GET: Retrieve a category with translations and children
    PUT/PATCH: Update fields; a parent or order change repositions it
    DELETE: Delete it, promoting its children to root level
    """

    def get_object(self, pk, user):
        """Get a category the user may view, or None."""
        try:
            category = (
                Category.objects.select_related("tenant", "parent")
                .prefetch_related("translations")
                .get(pk=pk)
            )
        except Category.DoesNotExist:
            return None

        if not category.can_view(user):
            return None
        return category

    def get(self, request, pk):
        """Retrieve category details."""
        category = self.get_object(pk, request.user)
        if not category:
            return SecurityResponseHelper.resource_access_denied()

        serializer = CategoryDetailSerializer(category, context={"request": request})
        return Response(serializer.data)

    @handle_common_api_exceptions
    def put(self, request, pk):
        """Update category."""
        category = self.get_object(pk, request.user)
        if not category:
            return SecurityResponseHelper.resource_access_denied()

        permission_error = self.check_edit_permission(category.tenant, request.user)
        if permission_error:
            return permission_error

        serializer = CategoryUpdateSerializer(
            category, data=request.data, context={"request": request}, partial=True
        )
        if not serializer.is_valid():
            return APIError.create_validation_error_response(serializer.errors)

        category = serializer.save()
        category = self.get_object(category.pk, request.user)
        return Response(
            CategoryDetailSerializer(category, context={"request": request}).data
        )

    def patch(self, request, pk):
        """Partially update category."""
        return self.put(request, pk)

    @handle_common_api_exceptions
    def delete(self, request, pk):
        """Delete category."""
        category = self.get_object(pk, request.user)
        if not category:
            return SecurityResponseHelper.resource_access_denied()

        permission_error = self.check_edit_permission(category.tenant, request.user)
        if permission_error:
            return permission_error

        CategoryService.delete_category(category, user=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)
