from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import IsAuthenticated, AllowAny
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi

from apps.payments.serializers import PaymentSerializer
from core.constants import GIG_STATUS_OPEN
from core.utils import IsStore, IsWorker, IsStoreOrWorker, format_pagination_response, parse_pagination
from . import lifecycle, store
from .serializers import (
    GigWriteSerializer, GigSerializer, GigListSerializer, GigApplicationSerializer, ApplySerializer,
    ResolveApplicationSerializer, CancelGigSerializer, GigReviewSerializer,
)

pagination_parameters = [
    openapi.Parameter('page', openapi.IN_QUERY, type=openapi.TYPE_INTEGER, default=1),
    openapi.Parameter('limit', openapi.IN_QUERY, type=openapi.TYPE_INTEGER, default=10),
]


class GigListCreateView(APIView):

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAuthenticated(), IsStore()]
        return [AllowAny()]

    @swagger_auto_schema(
        operation_description="Browse gigs. Defaults to open gigs, newest first.",
        manual_parameters=pagination_parameters + [
            openapi.Parameter('status', openapi.IN_QUERY, type=openapi.TYPE_STRING, default=GIG_STATUS_OPEN),
            openapi.Parameter('category', openapi.IN_QUERY, type=openapi.TYPE_STRING),
            openapi.Parameter('city', openapi.IN_QUERY, type=openapi.TYPE_STRING),
            openapi.Parameter('sort_by', openapi.IN_QUERY, type=openapi.TYPE_STRING, default='created_at'),
            openapi.Parameter('sort_order', openapi.IN_QUERY, type=openapi.TYPE_STRING, enum=['asc', 'desc']),
        ],
        responses={200: GigListSerializer(many=True), 400: 'Bad Request'}
    )
    def get(self, request):
        params = request.query_params
        page, limit = parse_pagination(params.get('page', 1), params.get('limit', 10))
        gigs, total = lifecycle.list_gigs(
            status=params.get('status') or GIG_STATUS_OPEN,
            category=params.get('category'),
            city=params.get('city'),
            sort_by=params.get('sort_by', 'created_at'),
            sort_order=params.get('sort_order', 'desc'),
            page=page,
            limit=limit,
        )
        data = GigListSerializer(gigs, many=True).data
        return Response(format_pagination_response(data, page, limit, total))

    @swagger_auto_schema(
        operation_description="Post a new gig (stores only).",
        request_body=GigWriteSerializer,
        responses={201: GigSerializer, 400: 'Bad Request', 401: 'Unauthorized', 403: 'Forbidden'}
    )
    def post(self, request):
        serializer = GigWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        gig = store.create_gig(request.user, **serializer.to_gig_fields())
        gig = store.get_gig(gig.pk)
        return Response(GigSerializer(gig, context={'request': request}).data, status=status.HTTP_201_CREATED)


class GigDetailView(APIView):

    def get_permissions(self):
        if self.request.method in ('PUT', 'PATCH'):
            return [IsAuthenticated(), IsStore()]
        return [AllowAny()]

    @swagger_auto_schema(
        operation_description="Retrieve a gig. Every read counts as a view.",
        responses={200: GigSerializer, 404: 'Not Found'}
    )
    def get(self, request, pk):
        gig = lifecycle.view_gig(pk)
        return Response(GigSerializer(gig, context={'request': request}).data)

    @swagger_auto_schema(
        operation_description="Edit an open gig (owning store only). Totals are recomputed.",
        request_body=GigWriteSerializer,
        responses={200: GigSerializer, 400: 'Bad Request', 403: 'Forbidden', 404: 'Not Found', 409: 'Conflict'}
    )
    def put(self, request, pk):
        return self._update(request, pk, partial=False)

    @swagger_auto_schema(
        operation_description="Partially edit an open gig (owning store only).",
        request_body=GigWriteSerializer,
        responses={200: GigSerializer, 400: 'Bad Request', 403: 'Forbidden', 404: 'Not Found', 409: 'Conflict'}
    )
    def patch(self, request, pk):
        return self._update(request, pk, partial=True)

    def _update(self, request, pk, partial):
        serializer = GigWriteSerializer(data=request.data, partial=partial)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        gig = store.update_gig(pk, request.user, **serializer.to_gig_fields())
        return Response(GigSerializer(gig, context={'request': request}).data)


class MyGigsView(APIView):
    permission_classes = [IsAuthenticated, IsStoreOrWorker]

    @swagger_auto_schema(
        operation_description="Gigs posted by the calling store, or assigned to the calling worker.",
        manual_parameters=pagination_parameters + [
            openapi.Parameter('status', openapi.IN_QUERY, type=openapi.TYPE_STRING),
        ],
        responses={200: GigListSerializer(many=True), 401: 'Unauthorized', 403: 'Forbidden'}
    )
    def get(self, request):
        params = request.query_params
        page, limit = parse_pagination(params.get('page', 1), params.get('limit', 10))
        gigs, total = lifecycle.list_my_gigs(request.user, status=params.get('status'), page=page, limit=limit)
        data = GigListSerializer(gigs, many=True).data
        return Response(format_pagination_response(data, page, limit, total))


class GigApplyView(APIView):
    permission_classes = [IsAuthenticated, IsWorker]

    @swagger_auto_schema(
        operation_description="Apply for an open gig.",
        request_body=ApplySerializer,
        responses={
            201: GigApplicationSerializer,
            400: 'Bad Request, duplicate application or application limit reached',
            401: 'Unauthorized',
            403: 'Forbidden',
            404: 'Not Found',
            409: 'Gig is not open'
        }
    )
    def post(self, request, pk):
        serializer = ApplySerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        application = lifecycle.apply_for_gig(pk, request.user, serializer.validated_data.get('message', ''))
        return Response(GigApplicationSerializer(application).data, status=status.HTTP_201_CREATED)


class GigApplicationResolveView(APIView):
    permission_classes = [IsAuthenticated, IsStore]

    @swagger_auto_schema(
        operation_description="Accept or reject an application. Accepting assigns the worker "
                              "and rejects every other application.",
        request_body=ResolveApplicationSerializer,
        responses={
            200: GigApplicationSerializer,
            400: 'Bad Request',
            401: 'Unauthorized',
            403: 'Forbidden',
            404: 'Not Found',
            409: 'Gig no longer open or application already resolved'
        }
    )
    def put(self, request, pk, application_id):
        serializer = ResolveApplicationSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        action = serializer.validated_data['action']
        application = lifecycle.resolve_application(pk, application_id, request.user, action)
        return Response({
            'message': f"Application {action}ed successfully",
            'application': GigApplicationSerializer(application).data,
        })


class GigStartView(APIView):
    permission_classes = [IsAuthenticated, IsWorker]

    @swagger_auto_schema(
        operation_description="Assigned worker starts the gig.",
        responses={200: GigSerializer, 401: 'Unauthorized', 403: 'Forbidden', 404: 'Not Found', 409: 'Conflict'}
    )
    def put(self, request, pk):
        gig = lifecycle.start_gig(pk, request.user)
        return Response(GigSerializer(gig, context={'request': request}).data)


class GigCompleteView(APIView):
    permission_classes = [IsAuthenticated, IsWorker]

    @swagger_auto_schema(
        operation_description="Assigned worker completes the gig; a pending payment is recorded.",
        responses={
            200: openapi.Response(
                description='Gig completed',
                schema=openapi.Schema(
                    type=openapi.TYPE_OBJECT,
                    properties={
                        'gig': openapi.Schema(type=openapi.TYPE_OBJECT),
                        'payment': openapi.Schema(type=openapi.TYPE_OBJECT),
                    }
                )
            ),
            401: 'Unauthorized',
            403: 'Forbidden',
            404: 'Not Found',
            409: 'Conflict'
        }
    )
    def put(self, request, pk):
        gig, payment = lifecycle.complete_gig(pk, request.user)
        return Response({
            'gig': GigSerializer(gig, context={'request': request}).data,
            'payment': PaymentSerializer(payment).data,
        })


class GigCancelView(APIView):
    permission_classes = [IsAuthenticated, IsStore]

    @swagger_auto_schema(
        operation_description="Cancel an open or assigned gig (owning store only).",
        request_body=CancelGigSerializer,
        responses={200: GigSerializer, 401: 'Unauthorized', 403: 'Forbidden', 404: 'Not Found', 409: 'Conflict'}
    )
    def put(self, request, pk):
        serializer = CancelGigSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        gig = lifecycle.cancel_gig(pk, request.user, serializer.validated_data.get('reason', ''))
        return Response(GigSerializer(gig, context={'request': request}).data)


class GigReviewView(APIView):

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAuthenticated(), IsStoreOrWorker()]
        return [AllowAny()]

    @swagger_auto_schema(
        operation_description="Reviews left on a gig.",
        responses={200: GigReviewSerializer(many=True), 404: 'Not Found'}
    )
    def get(self, request, pk):
        gig = store.get_gig(pk)
        reviews = gig.reviews.select_related('reviewer', 'reviewee')
        return Response(GigReviewSerializer(reviews, many=True).data)

    @swagger_auto_schema(
        operation_description="Rate the other party of a completed gig.",
        request_body=GigReviewSerializer,
        responses={201: GigReviewSerializer, 400: 'Bad Request', 403: 'Forbidden', 409: 'Conflict'}
    )
    def post(self, request, pk):
        serializer = GigReviewSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        review = lifecycle.add_review(
            pk, request.user, serializer.validated_data['rating'], serializer.validated_data.get('comment', '')
        )
        return Response(GigReviewSerializer(review).data, status=status.HTTP_201_CREATED)
