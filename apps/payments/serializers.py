from rest_framework import serializers

from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    gig_title = serializers.CharField(source='gig.title', read_only=True)

    class Meta:
        model = Payment
        fields = [
            'id', 'gig', 'gig_title', 'store', 'worker', 'amount', 'platform_fee', 'worker_amount',
            'status', 'payment_method', 'transaction_id', 'processed_at', 'created_at',
        ]
        read_only_fields = fields
