"""
Serializers for the Razorpay checkout callback.
"""
from rest_framework import serializers


class PaymentCallbackSerializer(serializers.Serializer):
    """Payload the frontend posts after Razorpay checkout completes."""
    razorpay_order_id = serializers.CharField(max_length=100)
    razorpay_payment_id = serializers.CharField(max_length=100)
    razorpay_signature = serializers.CharField(max_length=256)
    userId = serializers.UUIDField()
