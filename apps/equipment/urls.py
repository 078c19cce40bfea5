"""
URL configuration for equipment API endpoints.
"""
from django.urls import path
from apps.equipment import views

urlpatterns = [
    path('', views.EquipmentListView.as_view(), name='equipment-list'),
    path('<uuid:equipment_id>', views.EquipmentDetailView.as_view(), name='equipment-detail'),
    path('<uuid:equipment_id>/status', views.EquipmentStatusView.as_view(), name='equipment-status'),
    path('<uuid:equipment_id>/history', views.EquipmentHistoryView.as_view(), name='equipment-history'),
    path('<uuid:equipment_id>/failure-reports', views.FailureReportView.as_view(), name='equipment-failure-reports'),
]
