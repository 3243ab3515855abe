"""URL configuration for the API application."""

from __future__ import annotations

from django.urls import path

from apps.api.views import (
    ApplicationDetailView,
    ApplicationHistoryView,
    ApplicationListView,
    ApplicationMessagesView,
    ApplicationTransitionView,
    AssignManagerView,
    DashboardView,
    HealthSummaryView,
    LogEntryListView,
    NotificationListView,
    NotificationReadView,
)

app_name = 'api'

urlpatterns = [
    path('applications/', ApplicationListView.as_view(), name='application-list'),
    path('applications/<uuid:pk>/', ApplicationDetailView.as_view(), name='application-detail'),
    path(
        'applications/<uuid:pk>/transition/',
        ApplicationTransitionView.as_view(),
        name='application-transition',
    ),
    path(
        'applications/<uuid:pk>/history/',
        ApplicationHistoryView.as_view(),
        name='application-history',
    ),
    path(
        'applications/<uuid:pk>/messages/',
        ApplicationMessagesView.as_view(),
        name='application-messages',
    ),
    path(
        'applications/<uuid:pk>/assign-manager/',
        AssignManagerView.as_view(),
        name='application-assign-manager',
    ),
    path('dashboard/', DashboardView.as_view(), name='dashboard'),
    path('notifications/', NotificationListView.as_view(), name='notification-list'),
    path('notifications/<int:pk>/read/', NotificationReadView.as_view(), name='notification-read'),
    path('logs/', LogEntryListView.as_view(), name='log-list'),
    path('health/', HealthSummaryView.as_view(), name='health-summary'),
]
