"""
API URL patterns for registrations app (Razorpay).
"""
from django.urls import path
from . import views

urlpatterns = [
    path('register/', views.register, name='register'),
    path('verify-payment/', views.verify_payment, name='verify_payment'),
    path('registrations/<str:reg_no>/status/', views.registration_status, name='registration_status'),
]
