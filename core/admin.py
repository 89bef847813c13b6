from django.contrib import admin, messages
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import Booking, Evidence, Payment, PG, Room, User


@admin.register(User)
class CustomUserAdmin(BaseUserAdmin):
	list_display = ('username', 'email', 'user_type', 'gender', 'upi_id', 'is_staff')
	list_filter = BaseUserAdmin.list_filter + ('user_type', 'gender')
	fieldsets = BaseUserAdmin.fieldsets + (
		('Additional Information', {'fields': ('user_type', 'gender', 'contact_number', 'upi_id')}),
	)
	add_fieldsets = BaseUserAdmin.add_fieldsets + (
		(
			'Additional Information',
			{
				'classes': ('wide',),
				'fields': ('user_type', 'gender', 'contact_number', 'upi_id'),
			},
		),
	)


@admin.register(PG)
class PGAdmin(admin.ModelAdmin):
	list_display = ('pg_name', 'owner', 'pg_type', 'area', 'status')
	list_filter = ('pg_type', 'status', 'area')
	search_fields = ('pg_name', 'area', 'owner__username', 'owner__email')


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
	list_display = ('pg', 'room_type', 'rent_monthly', 'total_beds', 'available_beds')
	list_select_related = ('pg',)
	search_fields = ('pg__pg_name', 'room_type')

	def get_readonly_fields(self, request, obj=None):
		# Capacity is fixed once a room exists; free beds move only through bookings.
		if obj is not None:
			return ('total_beds', 'available_beds')
		return ()


class EvidenceInline(admin.TabularInline):
	model = Evidence
	extra = 0
	can_delete = False
	readonly_fields = ('kind', 'reference_code', 'image_ref', 'submitted_by', 'created_at')


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
	list_display = ('id', 'customer', 'pg', 'room', 'beds_booked', 'status', 'payment_status', 'total_amount', 'expires_at')
	list_filter = ('status', 'payment_status', 'booking_type')
	search_fields = ('customer__username', 'pg__pg_name', 'customer_upi')
	list_select_related = ('customer', 'pg', 'room')
	readonly_fields = (
		'status',
		'payment_status',
		'beds_booked',
		'room',
		'rent_amount',
		'deposit_amount',
		'platform_fee',
		'total_amount',
		'payment_evidence_ref',
		'refund_evidence_ref',
		'decision_at',
		'expires_at',
		'created_at',
	)
	inlines = [EvidenceInline]

	def has_delete_permission(self, request, obj=None):
		return False


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
	list_display = ('booking', 'amount', 'status', 'provider_ref', 'refund_ref', 'updated_at')
	list_filter = ('status',)
	readonly_fields = ('booking', 'amount', 'status', 'refund_ref', 'created_at', 'updated_at')
	actions = ['mark_as_paid']

	@admin.action(description='Mark selected payments as paid')
	def mark_as_paid(self, request, queryset):
		updated = 0
		for payment in queryset.filter(status=Payment.Status.CREATED):
			payment.mark_paid(payment.provider_ref or f'admin-{request.user.pk}')
			updated += 1
		self.message_user(request, f'{updated} payment(s) marked as paid.', messages.SUCCESS)


admin.site.register(Evidence)
