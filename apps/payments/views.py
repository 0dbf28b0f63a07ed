from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from django.db.models import Q

from core.exceptions import NotFound
from core.utils import IsStoreOrWorker, format_pagination_response, parse_pagination
from .models import Payment
from .serializers import PaymentSerializer
from .utils import list_payments_for


class PaymentListView(APIView):
    permission_classes = [IsAuthenticated, IsStoreOrWorker]

    @swagger_auto_schema(
        operation_description="List payments where the caller is the paying store or the paid worker.",
        manual_parameters=[
            openapi.Parameter('status', openapi.IN_QUERY, type=openapi.TYPE_STRING),
            openapi.Parameter('page', openapi.IN_QUERY, type=openapi.TYPE_INTEGER),
            openapi.Parameter('limit', openapi.IN_QUERY, type=openapi.TYPE_INTEGER),
        ],
        responses={200: PaymentSerializer(many=True), 401: 'Unauthorized', 403: 'Forbidden'}
    )
    def get(self, request):
        params = request.query_params
        page, limit = parse_pagination(params.get('page', 1), params.get('limit', 10))
        payments, total = list_payments_for(request.user, status=params.get('status'), page=page, limit=limit)
        data = PaymentSerializer(payments, many=True).data
        return Response(format_pagination_response(data, page, limit, total))


class PaymentDetailView(APIView):
    permission_classes = [IsAuthenticated, IsStoreOrWorker]

    @swagger_auto_schema(
        operation_description="Retrieve one payment (store or worker party only).",
        responses={200: PaymentSerializer, 401: 'Unauthorized', 404: 'Not Found'}
    )
    def get(self, request, payment_id):
        try:
            payment = Payment.objects.select_related('gig').get(
                Q(store=request.user) | Q(worker=request.user), pk=payment_id
            )
        except Payment.DoesNotExist:
            raise NotFound("Payment not found.")
        return Response(PaymentSerializer(payment).data)
