"""
Django admin configuration for registrations app.
"""
from django.contrib import admin
import csv
from django.http import HttpResponse
from .models import AthleteEnrollment, PaymentActivity, Registration


class AthleteEnrollmentInline(admin.StackedInline):
    model = AthleteEnrollment
    can_delete = False
    extra = 0
    readonly_fields = ['enrollment_number', 'card_url', 'card_sent_at', 'delivery_claimed_at', 'created_at']


@admin.register(Registration)
class RegistrationAdmin(admin.ModelAdmin):
    """
    Admin interface for managing registrations.
    Includes filtering, search, and CSV export functionality.
    """
    list_display = [
        'reg_no', 'athlete_name', 'father_name', 'district', 'mobile',
        'email', 'amount', 'payment', 'created_at'
    ]
    list_filter = ['payment', 'gender', 'district', 'created_at']
    search_fields = ['reg_no', 'athlete_name', 'email', 'mobile', 'aadhaar_number', 'razorpay_order_id']
    readonly_fields = [
        'id', 'reg_no', 'payment', 'amount', 'currency',
        'razorpay_order_id', 'razorpay_payment_id', 'created_at', 'updated_at'
    ]
    inlines = [AthleteEnrollmentInline]
    fieldsets = (
        ('Athlete Information', {
            'fields': ('reg_no', 'athlete_name', 'father_name', 'mother_name', 'dob', 'gender')
        }),
        ('Contact', {
            'fields': ('district', 'mobile', 'email', 'address', 'pin')
        }),
        ('Identity & Academy', {
            'fields': ('aadhaar_number', 'pan_number', 'academy_name', 'coach_name')
        }),
        ('Documents', {
            'fields': ('photo', 'certificate', 'resident_certificate', 'aadhaar_front_photo', 'aadhaar_back_photo'),
            'classes': ('collapse',)
        }),
        ('Payment Information', {
            'fields': ('amount', 'currency', 'payment', 'razorpay_order_id', 'razorpay_payment_id')
        }),
        ('Additional Information', {
            'fields': ('id', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    actions = ['export_as_csv']

    def export_as_csv(self, request, queryset):
        """
        Export selected registrations as CSV.
        """
        meta = self.model._meta
        field_names = [
            'reg_no', 'athlete_name', 'father_name', 'mother_name', 'dob',
            'gender', 'district', 'mobile', 'email', 'address', 'pin',
            'academy_name', 'coach_name', 'amount', 'payment', 'created_at'
        ]

        response = HttpResponse(content_type='text/csv')
        response['Content-Disposition'] = f'attachment; filename={meta}.csv'
        writer = csv.writer(response)

        writer.writerow(field_names + ['enrollment_number'])
        for obj in queryset.select_related('enrollment'):
            enrollment = obj.enrollment_or_none
            row = [getattr(obj, field) for field in field_names]
            row.append(enrollment.enrollment_number if enrollment else '')
            writer.writerow(row)

        return response

    export_as_csv.short_description = "Export selected registrations as CSV"


@admin.register(AthleteEnrollment)
class AthleteEnrollmentAdmin(admin.ModelAdmin):
    list_display = ['enrollment_number', 'registration', 'card_sent_at', 'created_at']
    search_fields = ['enrollment_number', 'registration__reg_no', 'registration__athlete_name']
    readonly_fields = ['enrollment_number', 'registration', 'card_url', 'card_sent_at', 'delivery_claimed_at', 'created_at']


@admin.register(PaymentActivity)
class PaymentActivityAdmin(admin.ModelAdmin):
    list_display = ['reference', 'registration', 'status', 'amount', 'currency', 'gateway', 'created_at']
    list_filter = ['status', 'gateway', 'created_at']
    search_fields = ['reference', 'payment_id', 'registration__reg_no', 'registration__email']
    readonly_fields = [f.name for f in PaymentActivity._meta.fields]
