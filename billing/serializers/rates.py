from rest_framework import serializers

from billing.models import DoctorServiceRate
from billing.serializers.common import CleanCharField, money_field


class RateCreateSerializer(serializers.Serializer):
    scope = serializers.ChoiceField(choices=DoctorServiceRate.SCOPE_CHOICES, default=DoctorServiceRate.SCOPE_SERVICE)
    serviceId = serializers.IntegerField(required=False, allow_null=True)
    serviceName = CleanCharField(required=False, allow_blank=True, max_length=255)
    serviceCategory = serializers.ChoiceField(choices=DoctorServiceRate.CATEGORY_CHOICES, required=False, allow_null=True)
    rateType = serializers.ChoiceField(choices=DoctorServiceRate.RATE_TYPE_CHOICES)
    rateAmount = money_field()
    notes = CleanCharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if attrs['rateType'] == DoctorServiceRate.RATE_PERCENTAGE and attrs['rateAmount'] > 100:
            raise serializers.ValidationError({'rateAmount': 'percentage must be between 0 and 100'})
        if attrs['scope'] == DoctorServiceRate.SCOPE_SERVICE and not attrs.get('serviceId'):
            if not (attrs.get('serviceName') and attrs.get('serviceCategory')):
                raise serializers.ValidationError('serviceId or serviceName with serviceCategory is required')
        return attrs


class RateListQuerySerializer(serializers.Serializer):
    includeInactive = serializers.BooleanField(required=False, default=False)


def format_rate(rate: DoctorServiceRate) -> dict:
    return {
        'id': rate.id,
        'doctorId': rate.doctor_id,
        'scope': rate.scope,
        'serviceId': rate.service_id,
        'serviceName': rate.service_name,
        'serviceCategory': rate.service_category,
        'rateType': rate.rate_type,
        'rateAmount': rate.rate_amount,
        'isActive': rate.is_active,
        'notes': rate.notes,
        'updatedAt': rate.updated_at,
    }
