from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from billing.permissions import IsBillingStaff, IsStaffRole
from billing.serializers.patients import PatientDiscountSerializer, PatientPaymentSerializer, format_ledger
from billing.services.events import record_patient_discount, record_patient_payment
from billing.services.patient_ledger import build_patient_ledger


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def patient_ledger(request, patient_id: int):
    """Charges, payments and discounts of a patient with a running balance."""
    return Response({'ok': True, 'data': format_ledger(build_patient_ledger(patient_id))})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def patient_payment(request, patient_id: int):
    s = PatientPaymentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    payment = record_patient_payment(
        request.user,
        patient_id=patient_id,
        amount=vd['amount'],
        payment_method=vd['paymentMethod'],
        reason=vd.get('reason', ''),
        payment_date=vd.get('paymentDate'),
    )
    return Response({'ok': True, 'data': {
        'paymentId': payment.payment_id,
        'amount': payment.amount,
        'receiptNumber': payment.receipt_number,
    }}, status=201)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsBillingStaff])
def patient_discount(request, patient_id: int):
    s = PatientDiscountSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    discount = record_patient_discount(
        request.user,
        patient_id=patient_id,
        amount=vd['amount'],
        discount_type=vd['discountType'],
        reason=vd['reason'],
        discount_date=vd.get('discountDate'),
    )
    return Response({'ok': True, 'data': {
        'discountId': discount.discount_id,
        'amount': discount.amount,
        'discountType': discount.discount_type,
    }}, status=201)
