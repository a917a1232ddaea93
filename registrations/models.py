"""
Database models for JKTA athlete registrations.
"""
import uuid
from datetime import timedelta

from django.db import models
from django.utils import timezone


class Registration(models.Model):
    """
    Stores the application submitted by an athlete through the registration form.
    """
    GENDER_CHOICES = [
        ('Male', 'Male'),
        ('Female', 'Female'),
        ('Other', 'Other'),
    ]

    # Primary identifier (returned to the client as userId)
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Registration number: ATH + 14 digits, assigned once at creation
    reg_no = models.CharField(max_length=20, unique=True, editable=False)

    # Athlete information
    athlete_name = models.CharField(max_length=200)
    father_name = models.CharField(max_length=200)
    mother_name = models.CharField(max_length=200)
    dob = models.DateField()
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES)
    district = models.CharField(max_length=100)
    mobile = models.CharField(max_length=15)
    email = models.EmailField()
    aadhaar_number = models.CharField(max_length=12)
    address = models.TextField()
    pin = models.CharField(max_length=6)
    pan_number = models.CharField(max_length=10, blank=True, null=True)
    academy_name = models.CharField(max_length=200, blank=True, null=True)
    coach_name = models.CharField(max_length=200, blank=True, null=True)

    # Uploaded documents (public URLs in the content store)
    photo = models.URLField(max_length=500, blank=True, null=True)
    certificate = models.URLField(max_length=500, blank=True, null=True)
    resident_certificate = models.URLField(max_length=500, blank=True, null=True)
    aadhaar_front_photo = models.URLField(max_length=500, blank=True, null=True)
    aadhaar_back_photo = models.URLField(max_length=500, blank=True, null=True)

    # Payment information (amount in paise)
    payment = models.BooleanField(default=False, help_text="Set once the Razorpay signature has been verified")
    amount = models.PositiveIntegerField(default=0)
    currency = models.CharField(max_length=3, default='INR')
    razorpay_order_id = models.CharField(max_length=100, unique=True, blank=True, null=True)
    razorpay_payment_id = models.CharField(max_length=100, blank=True, null=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Registration'
        verbose_name_plural = 'Registrations'

    def __str__(self):
        return f"{self.reg_no} - {self.athlete_name} - {'Paid' if self.payment else 'Pending'}"

    @property
    def enrollment_or_none(self):
        """Return the AthleteEnrollment for this registration, if one exists."""
        try:
            return self.enrollment
        except AthleteEnrollment.DoesNotExist:
            return None


class AthleteEnrollment(models.Model):
    """
    Created once per verified payment. Holds the federation enrollment number
    printed on the ID card.
    """
    id = models.BigAutoField(primary_key=True)
    enrollment_number = models.CharField(max_length=20, unique=True)
    registration = models.OneToOneField(
        Registration, on_delete=models.PROTECT, related_name='enrollment'
    )

    # Card delivery bookkeeping
    card_url = models.URLField(max_length=500, blank=True, null=True)
    card_sent_at = models.DateTimeField(blank=True, null=True)
    delivery_claimed_at = models.DateTimeField(
        blank=True, null=True,
        help_text="Set while a card delivery is running; cleared when it ends"
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Athlete Enrollment'
        verbose_name_plural = 'Athlete Enrollments'

    def __str__(self):
        return f"{self.enrollment_number} ({self.registration.reg_no})"

    @property
    def is_card_delivered(self):
        return self.card_sent_at is not None

    def is_delivery_in_progress(self, timeout):
        """A claim older than timeout seconds belongs to a run that died and is ignored."""
        if self.delivery_claimed_at is None:
            return False
        return timezone.now() - self.delivery_claimed_at < timedelta(seconds=timeout)


class EnrollmentSequence(models.Model):
    """
    Single-row counter backing enrollment numbers. Always locked with
    select_for_update before it is incremented.
    """
    last_value = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Enrollment Sequence'
        verbose_name_plural = 'Enrollment Sequence'

    def save(self, *args, **kwargs):
        """Ensure only one sequence row exists"""
        self.pk = 1
        super().save(*args, **kwargs)

    def __str__(self):
        return f"Enrollment sequence at {self.last_value}"


class PaymentActivity(models.Model):
    """
    Logs every payment-related event: initiated (order created) and success
    (callback verified).
    """
    STATUS_CHOICES = [
        ('initiated', 'Initiated'),
        ('success', 'Success'),
    ]
    id = models.BigAutoField(primary_key=True)
    registration = models.ForeignKey(
        Registration, on_delete=models.CASCADE, related_name='payment_activities'
    )
    reference = models.CharField(max_length=100, db_index=True, help_text="Razorpay order id")
    payment_id = models.CharField(max_length=100, blank=True, null=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, db_index=True)
    amount = models.PositiveIntegerField(default=0)
    currency = models.CharField(max_length=3, default='INR')
    gateway = models.CharField(max_length=20, default='razorpay')
    message = models.CharField(max_length=255, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Payment Activity'
        verbose_name_plural = 'Payment Activities'

    def __str__(self):
        return f"{self.reference} – {self.get_status_display()} – {self.amount} {self.currency}"
