from decimal import Decimal

from rest_framework import serializers

from billing.models import OpdVisit, PatientDiscount, PatientPayment, PatientService, Service
from billing.serializers.common import CleanCharField, money_field


class PatientServiceCreateSerializer(serializers.Serializer):
    patientId = serializers.IntegerField(min_value=1)
    doctorId = serializers.IntegerField(required=False, allow_null=True)
    serviceId = serializers.IntegerField(required=False, allow_null=True)
    serviceType = CleanCharField(max_length=32)
    serviceName = CleanCharField(required=False, allow_blank=True, max_length=255)
    price = money_field(required=False, allow_null=True)
    billingType = serializers.ChoiceField(choices=Service.BILLING_TYPE_CHOICES, required=False)
    quantity = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True)
    scheduledDate = serializers.DateTimeField(required=False)
    endDate = serializers.DateTimeField(required=False, allow_null=True)
    status = serializers.ChoiceField(choices=PatientService.STATUS_CHOICES, required=False)
    notes = CleanCharField(required=False, allow_blank=True)


class OpdVisitCreateSerializer(serializers.Serializer):
    patientId = serializers.IntegerField(min_value=1)
    doctorId = serializers.IntegerField(min_value=1)
    visitDate = serializers.DateTimeField(required=False)
    consultationFee = money_field(required=False, allow_null=True)
    symptoms = CleanCharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=OpdVisit.STATUS_CHOICES, required=False)


class PathologyTestSerializer(serializers.Serializer):
    name = CleanCharField(max_length=255)
    category = CleanCharField(required=False, allow_blank=True, max_length=128)
    price = money_field()
    serviceId = serializers.IntegerField(required=False, allow_null=True)


class PathologyOrderCreateSerializer(serializers.Serializer):
    patientId = serializers.IntegerField(min_value=1)
    doctorId = serializers.IntegerField(required=False, allow_null=True)
    orderedDate = serializers.DateTimeField(required=False)
    remarks = CleanCharField(required=False, allow_blank=True)
    tests = PathologyTestSerializer(many=True, allow_empty=False)


class AdmissionCreateSerializer(serializers.Serializer):
    patientId = serializers.IntegerField(min_value=1)
    doctorId = serializers.IntegerField(required=False, allow_null=True)
    admissionDate = serializers.DateTimeField(required=False)
    wardType = CleanCharField(required=False, allow_blank=True, max_length=64)
    roomNumber = CleanCharField(required=False, allow_blank=True, max_length=32)
    reason = CleanCharField(required=False, allow_blank=True)
    dailyCost = money_field(required=False, allow_null=True)
    initialDeposit = money_field(required=False, allow_null=True)


class DischargeSerializer(serializers.Serializer):
    dischargeDate = serializers.DateTimeField(required=False)


class PatientPaymentSerializer(serializers.Serializer):
    amount = money_field(min_value=Decimal('0.01'))
    paymentMethod = serializers.ChoiceField(choices=PatientPayment.METHOD_CHOICES, default='cash')
    reason = CleanCharField(required=False, allow_blank=True, max_length=255)
    paymentDate = serializers.DateTimeField(required=False)


class PatientDiscountSerializer(serializers.Serializer):
    amount = money_field(min_value=Decimal('0.01'))
    discountType = serializers.ChoiceField(choices=PatientDiscount.TYPE_CHOICES, default='manual')
    reason = CleanCharField(max_length=255)
    discountDate = serializers.DateTimeField(required=False)

    def validate_reason(self, v):
        if not v:
            raise serializers.ValidationError('reason is required')
        return v


def format_ledger(ledger) -> dict:
    return {
        'patientId': ledger.patient.pk,
        'patientCode': ledger.patient.patient_id,
        'patientName': ledger.patient.name,
        'totalCharges': ledger.total_charges,
        'totalPayments': ledger.total_payments,
        'totalDiscounts': ledger.total_discounts,
        'balance': ledger.balance,
        'lines': [{
            'kind': line.kind,
            'date': line.date,
            'description': line.description,
            'amount': line.amount,
            'balance': line.balance,
            'sourceType': line.source_type,
            'sourceId': line.source_id,
        } for line in ledger.lines],
    }
