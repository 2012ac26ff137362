from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from billing.permissions import IsAdminRole, IsBillingStaff
from billing.serializers.earnings import (
    EarningListQuerySerializer, MarkPaidSerializer, RecalculateSerializer, format_earning, format_payment,
)
from billing.services import ledger


def _outcome(outcome) -> dict:
    payload = {'ok': True, 'status': outcome.status, 'count': outcome.count, 'totalAmount': outcome.total_amount}
    if outcome.payment is not None:
        payload['payment'] = format_payment(outcome.payment)
    if outcome.earning is not None:
        payload['earning'] = format_earning(outcome.earning)
    return payload


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsBillingStaff])
def list_earnings(request):
    """List doctor earnings, newest service first.

    Query params:
      - doctorId, status: optional filters
      - page, pageSize: pagination (optional)
    """
    q = EarningListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = ledger.list_earnings(doctor_id=vd.get('doctorId'), status=vd.get('status'))

    total = qs.count()
    page, page_size = vd.get('page'), vd.get('pageSize')
    if page and page_size:
        start = (page - 1) * page_size
        qs = qs[start:start + page_size]
    return Response({
        'ok': True,
        'data': [format_earning(e) for e in qs],
        'pagination': {'total': total, 'page': page or 1, 'pageSize': page_size or total},
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsBillingStaff])
def mark_earning_paid(request, earning_id: int):
    s = MarkPaidSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    outcome = ledger.mark_paid(earning_id, payment_method=s.validated_data.get('paymentMethod'),
                               processed_by=request.user)
    return Response(_outcome(outcome))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsBillingStaff])
def mark_all_paid(request, doctor_id: int):
    s = MarkPaidSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    outcome = ledger.mark_all_pending_paid(doctor_id, payment_method=s.validated_data.get('paymentMethod'),
                                           processed_by=request.user)
    return Response(_outcome(outcome))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def recalculate_earnings(request):
    s = RecalculateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    kwargs = {'sources': vd['sources']} if vd.get('sources') else {}
    result = ledger.recalculate(vd.get('doctorId'), **kwargs)
    return Response({'ok': True, 'data': result})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsBillingStaff])
def doctor_payments(request, doctor_id: int):
    payments = ledger.list_doctor_payments(doctor_id)
    return Response({'ok': True, 'data': [format_payment(p) for p in payments]})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsBillingStaff])
def doctor_earnings_summary(request, doctor_id: int):
    return Response({'ok': True, 'data': ledger.earnings_summary(doctor_id)})
