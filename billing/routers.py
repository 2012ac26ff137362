"""
URL mappings for the billing API.

Paths carry no trailing slash, matching ``APPEND_SLASH = False`` in
settings.
"""
from django.urls import path, include

from .auth_views import login_view, jwt_refresh_view
from .views import earnings, events, health, patients, rates

urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh_view'),

    # Doctor commission rates
    path('api/doctors/<int:doctor_id>/rates', rates.doctor_rates, name='doctor_rates'),
    path('api/rates/<int:rate_id>/deactivate', rates.rate_deactivate, name='rate_deactivate'),

    # Doctor earnings and payments
    path('api/earnings', earnings.list_earnings, name='list_earnings'),
    path('api/earnings/recalculate', earnings.recalculate_earnings, name='recalculate_earnings'),
    path('api/earnings/<int:earning_id>/mark-paid', earnings.mark_earning_paid, name='mark_earning_paid'),
    path('api/doctors/<int:doctor_id>/earnings/mark-all-paid', earnings.mark_all_paid, name='mark_all_paid'),
    path('api/doctors/<int:doctor_id>/earnings/summary', earnings.doctor_earnings_summary,
         name='doctor_earnings_summary'),
    path('api/doctors/<int:doctor_id>/payments', earnings.doctor_payments, name='doctor_payments'),

    # Billable events
    path('api/patient-services', events.create_patient_service, name='create_patient_service'),
    path('api/opd-visits', events.create_opd_visit, name='create_opd_visit'),
    path('api/pathology-orders', events.create_pathology_order, name='create_pathology_order'),
    path('api/admissions', events.admit_patient, name='admit_patient'),
    path('api/admissions/<int:admission_id>/discharge', events.discharge_patient, name='discharge_patient'),

    # Patient money in and ledger
    path('api/patients/<int:patient_id>/payments', patients.patient_payment, name='patient_payment'),
    path('api/patients/<int:patient_id>/discounts', patients.patient_discount, name='patient_discount'),
    path('api/patients/<int:patient_id>/ledger', patients.patient_ledger, name='patient_ledger'),
]
