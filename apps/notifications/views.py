from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from django.utils import timezone

from core.exceptions import NotFound
from core.utils import format_pagination_response, parse_pagination
from .models import Notification
from .serializers import NotificationSerializer

import logging

logger = logging.getLogger(__name__)


class NotificationListView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="List the authenticated user's notifications, newest first.",
        manual_parameters=[
            openapi.Parameter('unread', openapi.IN_QUERY, type=openapi.TYPE_BOOLEAN),
            openapi.Parameter('page', openapi.IN_QUERY, type=openapi.TYPE_INTEGER),
            openapi.Parameter('limit', openapi.IN_QUERY, type=openapi.TYPE_INTEGER),
        ],
        responses={200: NotificationSerializer(many=True), 401: 'Unauthorized'}
    )
    def get(self, request):
        page, limit = parse_pagination(request.query_params.get('page', 1), request.query_params.get('limit', 20))
        notifications = Notification.objects.filter(recipient=request.user).select_related('sender')
        if request.query_params.get('unread') in ('1', 'true', 'True'):
            notifications = notifications.filter(is_read=False)
        total = notifications.count()
        offset = (page - 1) * limit
        data = NotificationSerializer(notifications[offset:offset + limit], many=True).data
        response = format_pagination_response(data, page, limit, total)
        response['unread_count'] = Notification.objects.filter(recipient=request.user, is_read=False).count()
        return Response(response)


class NotificationReadView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Mark one notification as read.",
        responses={200: NotificationSerializer, 401: 'Unauthorized', 404: 'Not Found'}
    )
    def put(self, request, notification_id):
        try:
            notification = Notification.objects.get(pk=notification_id, recipient=request.user)
        except Notification.DoesNotExist:
            raise NotFound("Notification not found.")
        notification.mark_as_read()
        return Response(NotificationSerializer(notification).data)


class NotificationReadAllView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Mark every unread notification as read.",
        responses={200: openapi.Response('Number of notifications updated'), 401: 'Unauthorized'}
    )
    def put(self, request):
        updated = Notification.objects.filter(recipient=request.user, is_read=False).update(
            is_read=True, read_at=timezone.now()
        )
        logger.info(f"Marked {updated} notifications read for user {request.user.id}")
        return Response({'updated': updated})
