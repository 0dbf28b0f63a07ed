from rest_framework import serializers

from apps.users.serializers import PublicUserSerializer
from core.constants import GIG_CATEGORY_CHOICES, APPLICATION_ACTION_CHOICES
from .models import Gig, GigApplication, GigReview

LOCATION_FIELDS = (
    ('address', 'address'),
    ('city', 'city'),
    ('state', 'state'),
    ('pincode', 'pincode'),
    ('lat', 'latitude'),
    ('lng', 'longitude'),
)


class LocationSerializer(serializers.Serializer):
    address = serializers.CharField(max_length=300)
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100)
    pincode = serializers.CharField(max_length=10)
    lat = serializers.DecimalField(max_digits=9, decimal_places=6, required=False, allow_null=True)
    lng = serializers.DecimalField(max_digits=9, decimal_places=6, required=False, allow_null=True)


class GigWriteSerializer(serializers.Serializer):
    """Input shape for posting or editing a gig; business rules live in apps.gigs.store."""
    title = serializers.CharField(min_length=5, max_length=100)
    description = serializers.CharField(min_length=20, max_length=1000)
    category = serializers.ChoiceField(choices=GIG_CATEGORY_CHOICES)
    location = LocationSerializer()
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()
    hourly_rate = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    requirements = serializers.ListField(child=serializers.CharField(max_length=200), required=False)
    skills = serializers.ListField(child=serializers.CharField(max_length=100), required=False)
    is_urgent = serializers.BooleanField(required=False)
    max_applications = serializers.IntegerField(min_value=1, max_value=100, required=False)

    def to_gig_fields(self):
        """Flatten validated data into Gig model field names."""
        data = dict(self.validated_data)
        location = data.pop('location', None) or {}
        # A partial update may carry only some location keys
        for source, field in LOCATION_FIELDS:
            if source in location:
                data[field] = location[source]
        return data


class GigApplicationSerializer(serializers.ModelSerializer):
    worker = PublicUserSerializer(read_only=True)

    class Meta:
        model = GigApplication
        fields = ['id', 'gig', 'worker', 'message', 'status', 'applied_at']
        read_only_fields = fields


class GigListSerializer(serializers.ModelSerializer):
    store = PublicUserSerializer(read_only=True)
    location = serializers.DictField(read_only=True)
    applications_count = serializers.SerializerMethodField()

    class Meta:
        model = Gig
        fields = [
            'id', 'title', 'category', 'store', 'location', 'start_time', 'end_time', 'duration',
            'hourly_rate', 'total_amount', 'status', 'is_urgent', 'is_active', 'views',
            'applications_count', 'max_applications', 'created_at',
        ]
        read_only_fields = fields

    def get_applications_count(self, obj):
        count = getattr(obj, 'applications_count', None)
        if count is None:
            count = len(obj.applications.all())
        return count


class GigSerializer(serializers.ModelSerializer):
    store = PublicUserSerializer(read_only=True)
    worker = PublicUserSerializer(read_only=True)
    location = serializers.DictField(read_only=True)
    applications = GigApplicationSerializer(many=True, read_only=True)

    class Meta:
        model = Gig
        fields = [
            'id', 'title', 'description', 'category', 'store', 'worker', 'location',
            'start_time', 'end_time', 'duration', 'hourly_rate', 'total_amount', 'payment_status',
            'status', 'requirements', 'skills', 'is_urgent', 'is_active', 'max_applications', 'views',
            'applications', 'assigned_at', 'started_at', 'completed_at', 'cancelled_at',
            'cancellation_reason', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def to_representation(self, instance):
        data = super().to_representation(instance)
        # Applicant details are for the posting store only
        request = self.context.get('request')
        if request is None or request.user.pk != instance.store_id:
            data['applications'] = [
                application for application in data['applications']
                if request is not None and application['worker']['id'] == request.user.pk
            ]
        return data


class ApplySerializer(serializers.Serializer):
    message = serializers.CharField(max_length=500, required=False, allow_blank=True, trim_whitespace=True)


class ResolveApplicationSerializer(serializers.Serializer):
    action = serializers.ChoiceField(
        choices=APPLICATION_ACTION_CHOICES,
        error_messages={'invalid_choice': 'Action must be either accept or reject.'}
    )


class CancelGigSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True)


class GigReviewSerializer(serializers.ModelSerializer):
    reviewer = PublicUserSerializer(read_only=True)
    reviewee = PublicUserSerializer(read_only=True)
    rating = serializers.IntegerField(min_value=1, max_value=5)

    class Meta:
        model = GigReview
        fields = ['id', 'gig', 'reviewer', 'reviewee', 'rating', 'comment', 'created_at']
        read_only_fields = ['id', 'gig', 'reviewer', 'reviewee', 'created_at']
