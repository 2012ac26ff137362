from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from billing.permissions import IsBillingStaff, IsBillingStaffOrReadOnly
from billing.serializers.rates import RateCreateSerializer, RateListQuerySerializer, format_rate
from billing.services.rates import deactivate_rate, list_rates, set_rate


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsBillingStaffOrReadOnly])
def doctor_rates(request, doctor_id: int):
    """List a doctor's commission rates or configure a new one.

    GET query params:
      - includeInactive: true|false
    """
    if request.method == 'GET':
        q = RateListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        rates = list_rates(doctor_id, include_inactive=q.validated_data['includeInactive'])
        return Response({'ok': True, 'data': [format_rate(r) for r in rates]})

    s = RateCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    rate = set_rate(
        doctor_id=doctor_id,
        scope=vd['scope'],
        rate_type=vd['rateType'],
        rate_amount=vd['rateAmount'],
        service_id=vd.get('serviceId'),
        service_name=vd.get('serviceName') or None,
        service_category=vd.get('serviceCategory'),
        notes=vd.get('notes', ''),
        created_by=request.user,
    )
    return Response({'ok': True, 'data': format_rate(rate)}, status=201)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsBillingStaff])
def rate_deactivate(request, rate_id: int):
    rate = deactivate_rate(rate_id, user=request.user)
    return Response({'ok': True, 'data': format_rate(rate)})
