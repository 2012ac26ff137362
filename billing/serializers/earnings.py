from rest_framework import serializers

from billing.models import DoctorEarning, DoctorPayment
from billing.services.ledger import RECALCULABLE_SOURCES


class EarningListQuerySerializer(serializers.Serializer):
    doctorId = serializers.IntegerField(required=False, min_value=1)
    status = serializers.ChoiceField(choices=DoctorEarning.STATUS_CHOICES, required=False)
    page = serializers.IntegerField(required=False, min_value=1)
    pageSize = serializers.IntegerField(required=False, min_value=1, max_value=200)


class MarkPaidSerializer(serializers.Serializer):
    paymentMethod = serializers.ChoiceField(choices=DoctorPayment.METHOD_CHOICES, required=False)


class RecalculateSerializer(serializers.Serializer):
    doctorId = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    sources = serializers.ListField(
        child=serializers.ChoiceField(choices=RECALCULABLE_SOURCES),
        required=False, allow_empty=False,
    )


def format_earning(e: DoctorEarning) -> dict:
    return {
        'id': e.id,
        'earningId': e.earning_id,
        'doctorId': e.doctor_id,
        'doctorName': e.doctor.name,
        'patientId': e.patient_id,
        'patientName': e.patient.name,
        'sourceType': e.source_type,
        'sourceId': e.source_id,
        'serviceName': e.service_name,
        'serviceCategory': e.service_category,
        'serviceDate': e.service_date,
        'rateType': e.rate_type,
        'rateAmount': e.rate_amount,
        'servicePrice': e.service_price,
        'earnedAmount': e.earned_amount,
        'status': e.status,
    }


def format_payment(p: DoctorPayment) -> dict:
    count = getattr(p, 'earnings_count', None)
    return {
        'id': p.id,
        'paymentId': p.payment_id,
        'doctorId': p.doctor_id,
        'paymentDate': p.payment_date,
        'totalAmount': p.total_amount,
        'paymentMethod': p.payment_method,
        'startDate': p.start_date,
        'endDate': p.end_date,
        'description': p.description,
        'earningsCount': count if count is not None else p.earnings.count(),
    }
