"""
URL configuration for service request, dispute and payment endpoints.
"""
from django.urls import path
from apps.service_requests import views

urlpatterns = [
    # Service requests
    path('service-requests', views.ServiceRequestListView.as_view(), name='service-request-list'),
    path('service-requests/<uuid:service_request_id>', views.ServiceRequestDetailView.as_view(), name='service-request-detail'),
    path('service-requests/<uuid:service_request_id>/status', views.ServiceRequestStatusView.as_view(), name='service-request-status'),
    path('service-requests/<uuid:service_request_id>/cancel', views.ServiceRequestCancelView.as_view(), name='service-request-cancel'),
    path('service-requests/<uuid:service_request_id>/history', views.ServiceRequestHistoryView.as_view(), name='service-request-history'),

    # Disputes
    path('disputes', views.DisputeListView.as_view(), name='dispute-list'),
    path('disputes/<uuid:dispute_id>', views.DisputeDetailView.as_view(), name='dispute-detail'),
    path('disputes/<uuid:dispute_id>/status', views.DisputeStatusView.as_view(), name='dispute-status'),
    path('disputes/<uuid:dispute_id>/escalate', views.DisputeEscalateView.as_view(), name='dispute-escalate'),

    # Payments
    path('payments', views.PaymentListView.as_view(), name='payment-list'),
    path('payments/<uuid:payment_id>/status', views.PaymentStatusView.as_view(), name='payment-status'),
]
