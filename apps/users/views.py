from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status, permissions
from rest_framework.authtoken.models import Token
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from django.contrib.auth import get_user_model

from core.exceptions import NotFound
from core.utils import IsStore, format_pagination_response, parse_pagination
from .serializers import LoginSerializer, UserSerializer, PublicUserSerializer, ProfileUpdateSerializer

import logging

User = get_user_model()
logger = logging.getLogger(__name__)


class AuthLoginView(APIView):
    permission_classes = []

    @swagger_auto_schema(
        request_body=LoginSerializer,
        responses={
            200: openapi.Response(
                description='Login successful',
                schema=openapi.Schema(
                    type=openapi.TYPE_OBJECT,
                    properties={
                        'token': openapi.Schema(type=openapi.TYPE_STRING),
                        'user': openapi.Schema(type=openapi.TYPE_OBJECT),
                    }
                )
            ),
            400: 'Bad Request'
        }
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        if serializer.is_valid():
            user = serializer.save()
            token, created = Token.objects.get_or_create(user=user)
            return Response({
                "token": token.key,
                "user": UserSerializer(user).data
            }, status=status.HTTP_200_OK)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


class LogoutView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        Token.objects.filter(user=request.user).delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


class UserProfileView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Get the authenticated user's profile.",
        responses={200: UserSerializer, 401: 'Unauthorized'}
    )
    def get(self, request):
        serializer = UserSerializer(request.user)
        return Response(serializer.data, status=status.HTTP_200_OK)

    @swagger_auto_schema(
        operation_description="Update the authenticated user's profile.",
        request_body=ProfileUpdateSerializer,
        responses={200: UserSerializer, 400: 'Bad Request', 401: 'Unauthorized'}
    )
    def put(self, request):
        serializer = ProfileUpdateSerializer(request.user, data=request.data, partial=True)
        if serializer.is_valid():
            user = serializer.save()
            logger.info(f"Profile updated for user {user.id}")
            return Response(UserSerializer(user).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


class PublicUserProfileView(APIView):
    permission_classes = []

    @swagger_auto_schema(
        operation_description="Public profile of a store or worker.",
        responses={200: PublicUserSerializer, 404: 'Not Found'}
    )
    def get(self, request, user_id):
        try:
            user = User.objects.get(pk=user_id, is_active=True)
        except User.DoesNotExist:
            raise NotFound("User not found.")
        return Response(PublicUserSerializer(user).data)


class WorkerListView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsStore]

    @swagger_auto_schema(
        operation_description="List active workers, optionally narrowed to a city.",
        manual_parameters=[
            openapi.Parameter('city', openapi.IN_QUERY, type=openapi.TYPE_STRING),
            openapi.Parameter('page', openapi.IN_QUERY, type=openapi.TYPE_INTEGER),
            openapi.Parameter('limit', openapi.IN_QUERY, type=openapi.TYPE_INTEGER),
        ],
        responses={200: PublicUserSerializer(many=True), 401: 'Unauthorized', 403: 'Forbidden'}
    )
    def get(self, request):
        page, limit = parse_pagination(request.query_params.get('page', 1), request.query_params.get('limit', 10))
        workers = User.objects.filter(user_type='worker', is_active=True).order_by('-rating', 'id')
        city = request.query_params.get('city')
        if city:
            workers = workers.filter(city__iexact=city)
        total = workers.count()
        offset = (page - 1) * limit
        data = PublicUserSerializer(workers[offset:offset + limit], many=True).data
        return Response(format_pagination_response(data, page, limit, total))
