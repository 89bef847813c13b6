from rest_framework import status
from rest_framework.generics import RetrieveAPIView
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from ..services.booking import CustomerBookingService, OwnerBookingService, booking_for_viewer
from ..services.queries import CustomerBookingsQuery, OwnerBookingQueue
from .permissions import IsCustomer, IsOwner
from .serializers import (
    BookingCreateSerializer,
    BookingSerializer,
    EvidenceSerializer,
    RejectSerializer,
    UserSerializer,
)


class CurrentUserView(RetrieveAPIView):
    """Return the authenticated user's profile information."""

    serializer_class = UserSerializer
    permission_classes = [IsAuthenticated]

    def get_object(self):
        return self.request.user


def payment_instructions(booking):
    if booking.owner_upi:
        note = "Pay to the owner's UPI and upload a screenshot of the payment."
    else:
        note = "Owner UPI not set yet. The owner should add a UPI id in their profile."
    return {
        'mode': 'upi',
        'owner_upi': booking.owner_upi,
        'amount': str(booking.total_amount),
        'pay_before': booking.expires_at,
        'note': note,
    }


class CustomerBookingsView(APIView):
    """List the customer's bookings or reserve beds in a room."""

    permission_classes = [IsCustomer]

    def get(self, request):
        bookings = CustomerBookingsQuery(request.user).list(request.query_params.get('status'))
        return Response(BookingSerializer(bookings, many=True).data)

    def post(self, request):
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = CustomerBookingService(request.user).create_booking(serializer.to_request())
        return Response(
            {
                'booking': BookingSerializer(booking).data,
                'payment': payment_instructions(booking),
            },
            status=status.HTTP_201_CREATED,
        )


class BookingDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, booking_id):
        booking = booking_for_viewer(booking_id, request.user)
        return Response(BookingSerializer(booking).data)


class BookingPaymentView(APIView):
    """Attach proof of payment to a booking awaiting payment."""

    permission_classes = [IsCustomer]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request, booking_id):
        serializer = EvidenceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = CustomerBookingService(request.user).submit_payment(booking_id, serializer.to_upload())
        return Response(BookingSerializer(booking).data)


class BookingCancelView(APIView):
    permission_classes = [IsCustomer]

    def post(self, request, booking_id):
        booking = CustomerBookingService(request.user).cancel(booking_id)
        return Response(BookingSerializer(booking).data)


class OwnerBookingQueueView(APIView):
    """Bookings on the owner's PGs, filtered by work bucket."""

    permission_classes = [IsOwner]

    def get(self, request):
        bookings = OwnerBookingQueue(request.user).list(request.query_params.get('bucket', 'pending'))
        return Response(BookingSerializer(bookings, many=True).data)


class OwnerBookingSummaryView(APIView):
    permission_classes = [IsOwner]

    def get(self, request):
        return Response(OwnerBookingQueue(request.user).counts())


class OwnerBookingAcceptView(APIView):
    permission_classes = [IsOwner]

    def post(self, request, booking_id):
        booking = OwnerBookingService(request.user).accept(booking_id)
        return Response(BookingSerializer(booking).data)


class OwnerBookingRejectView(APIView):
    permission_classes = [IsOwner]
    parser_classes = [JSONParser, FormParser, MultiPartParser]

    def post(self, request, booking_id):
        serializer = RejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = OwnerBookingService(request.user).reject(booking_id, serializer.validated_data['reason'])
        return Response(BookingSerializer(booking).data)


class OwnerRefundView(APIView):
    """Close a rejected booking once the owner proves the refund was sent."""

    permission_classes = [IsOwner]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request, booking_id):
        serializer = EvidenceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = OwnerBookingService(request.user).confirm_refund(booking_id, serializer.to_upload())
        return Response(BookingSerializer(booking).data)
