from rest_framework import serializers

from ..models import Booking, BookingType, User
from ..services.booking import BookingRequest
from ..services.evidence import EvidenceUpload


class UserSerializer(serializers.ModelSerializer):
    """Serializer exposing the current user's public profile information."""

    class Meta:
        model = User
        fields = (
            'id',
            'username',
            'email',
            'first_name',
            'last_name',
            'user_type',
            'contact_number',
            'gender',
            'upi_id',
        )
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):
    """Read-only projection of a booking joined with its PG, room and customer."""

    pg_name = serializers.CharField(source='pg.pg_name', read_only=True)
    area = serializers.CharField(source='pg.area', read_only=True)
    room_type = serializers.CharField(source='room.room_type', read_only=True)
    customer_name = serializers.SerializerMethodField()
    state = serializers.CharField(read_only=True)

    class Meta:
        model = Booking
        fields = (
            'id',
            'pg',
            'pg_name',
            'area',
            'room',
            'room_type',
            'customer',
            'customer_name',
            'booking_type',
            'start_date',
            'end_date',
            'beds_booked',
            'rent_amount',
            'deposit_amount',
            'platform_fee',
            'total_amount',
            'status',
            'payment_status',
            'state',
            'customer_upi',
            'owner_upi',
            'payment_evidence_ref',
            'refund_evidence_ref',
            'owner_reason',
            'created_at',
            'decision_at',
            'expires_at',
        )
        read_only_fields = fields

    def get_customer_name(self, obj):
        return obj.customer.get_full_name() or obj.customer.username


class BookingCreateSerializer(serializers.Serializer):
    pg_id = serializers.IntegerField()
    room_id = serializers.IntegerField()
    booking_type = serializers.ChoiceField(choices=BookingType.choices, default=BookingType.FIXED)
    start_date = serializers.DateField()
    end_date = serializers.DateField(required=False, allow_null=True)
    beds_booked = serializers.IntegerField(min_value=1, default=1)
    customer_upi = serializers.CharField(max_length=100, trim_whitespace=True)

    def to_request(self) -> BookingRequest:
        data = self.validated_data
        return BookingRequest(
            pg_id=data['pg_id'],
            room_id=data['room_id'],
            customer_upi=data['customer_upi'],
            start_date=data['start_date'],
            booking_type=data['booking_type'],
            end_date=data.get('end_date'),
            beds_booked=data['beds_booked'],
        )


class EvidenceSerializer(serializers.Serializer):
    image = serializers.ImageField()
    reference_code = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')

    def to_upload(self) -> EvidenceUpload:
        data = self.validated_data
        return EvidenceUpload(image=data['image'], reference_code=data['reference_code'])


class RejectSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=1000)
