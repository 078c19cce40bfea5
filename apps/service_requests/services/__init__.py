"""
Service layer for service requests, disputes and payments.
"""
from apps.service_requests.services.service_request_service import ServiceRequestService
from apps.service_requests.services.dispute_service import DisputeService
from apps.service_requests.services.payment_service import PaymentService

__all__ = ['ServiceRequestService', 'DisputeService', 'PaymentService']
