"""
Category reorder API views.

``CategoryReorderAPIView`` is the server side of ``HttpCommitGateway``: it
atomically applies a client-planned patch list. ``CategoryMoveAPIView``
plans a drop on the server against a fresh snapshot and commits it.
"""

import logging

from rest_framework.response import Response
from rest_framework.views import APIView

from api.errors import APIError, SecurityResponseHelper
from api.serializers import MoveSerializer, ReorderSerializer
from categories.exceptions import ReorderError
from categories.services import CategoryService

from .crud_views import CategoryDetailAPIView, CategoryPermissionMixin

logger = logging.getLogger(__name__)


class CategoryReorderAPIView(APIView, CategoryPermissionMixin):
    """
    PUT: Apply ``{tenantId, updates: [{id, parentId, order}]}`` atomically.

    Returns the tenant's refreshed category list. Failed validations return
    400 with ``{detail, code, ids}`` and write nothing.
    """

    def put(self, request):
        serializer = ReorderSerializer(data=request.data)
        if not serializer.is_valid():
            return APIError.create_validation_error_response(serializer.errors)

        data = serializer.validated_data
        tenant, error_response = self.get_tenant(data["tenantId"], request.user)
        if error_response:
            return error_response

        permission_error = self.check_edit_permission(tenant, request.user)
        if permission_error:
            return permission_error

        try:
            nodes = CategoryService.reorder(tenant.pk, data["updates"], user=request.user)
        except ReorderError as e:
            logger.warning(
                f"User {request.user.username} (ID: {request.user.id}) reorder in "
                f"tenant {tenant.pk} failed ({e.code}): {e.ids}"
            )
            return APIError.reorder_failed(e)

        return Response([node.to_dict() for node in nodes])


class CategoryMoveAPIView(APIView, CategoryPermissionMixin):
    """
    POST: Drop this category onto ``target``.

    Dropped on a child, it becomes that child's preceding sibling; dropped
    on a root, it becomes the root's last child. Returns the committed
    patches and the refreshed list.
    """

    def post(self, request, pk):
        category = CategoryDetailAPIView().get_object(pk, request.user)
        if not category:
            return SecurityResponseHelper.resource_access_denied()

        permission_error = self.check_edit_permission(category.tenant, request.user)
        if permission_error:
            return permission_error

        serializer = MoveSerializer(data=request.data)
        if not serializer.is_valid():
            return APIError.create_validation_error_response(serializer.errors)

        try:
            result, nodes = CategoryService.move(
                category.tenant_id,
                category.pk,
                serializer.validated_data["target"],
                user=request.user,
            )
        except ReorderError as e:
            return APIError.reorder_failed(e)

        if not result.accepted:
            return APIError.move_rejected(result.rejected)

        return Response(
            {
                "patches": [patch.to_dict() for patch in result.patches],
                "categories": [node.to_dict() for node in nodes],
            }
        )
