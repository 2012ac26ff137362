"""
Endpoints that register billable events.

Each endpoint answers as soon as the event is stored; the doctor
earning for it is calculated after commit and never fails the request.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from billing.permissions import IsStaffRole
from billing.serializers.patients import (
    AdmissionCreateSerializer, DischargeSerializer, OpdVisitCreateSerializer, PathologyOrderCreateSerializer,
    PatientServiceCreateSerializer,
)
from billing.services import events


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def create_patient_service(request):
    s = PatientServiceCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    instance = events.create_patient_service(
        request.user,
        patient_id=vd['patientId'],
        doctor_id=vd.get('doctorId'),
        service_id=vd.get('serviceId'),
        service_type=vd['serviceType'],
        service_name=vd.get('serviceName') or None,
        price=vd.get('price'),
        billing_type=vd.get('billingType'),
        quantity=vd.get('quantity'),
        scheduled_date=vd.get('scheduledDate'),
        end_date=vd.get('endDate'),
        status=vd.get('status'),
        notes=vd.get('notes', ''),
    )
    return Response({'ok': True, 'data': {
        'id': instance.id,
        'serviceName': instance.service_name,
        'price': instance.price,
        'billingType': instance.billing_type,
        'billingQuantity': instance.billing_quantity,
        'calculatedAmount': instance.calculated_amount,
        'receiptNumber': instance.receipt_number,
    }}, status=201)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def create_opd_visit(request):
    s = OpdVisitCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    visit = events.create_opd_visit(
        request.user,
        patient_id=vd['patientId'],
        doctor_id=vd['doctorId'],
        visit_date=vd.get('visitDate'),
        consultation_fee=vd.get('consultationFee'),
        symptoms=vd.get('symptoms', ''),
        status=vd.get('status'),
    )
    return Response({'ok': True, 'data': {
        'id': visit.id,
        'visitId': visit.visit_id,
        'consultationFee': visit.effective_fee,
        'status': visit.status,
    }}, status=201)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def create_pathology_order(request):
    s = PathologyOrderCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    order = events.create_pathology_order(
        request.user,
        patient_id=vd['patientId'],
        doctor_id=vd.get('doctorId'),
        ordered_date=vd.get('orderedDate'),
        remarks=vd.get('remarks', ''),
        tests=vd['tests'],
    )
    return Response({'ok': True, 'data': {
        'id': order.id,
        'orderId': order.order_id,
        'totalPrice': order.total_price,
        'testsCount': len(vd['tests']),
    }}, status=201)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def admit_patient(request):
    s = AdmissionCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    admission = events.admit_patient(
        request.user,
        patient_id=vd['patientId'],
        doctor_id=vd.get('doctorId'),
        admission_date=vd.get('admissionDate'),
        ward_type=vd.get('wardType', ''),
        room_number=vd.get('roomNumber', ''),
        reason=vd.get('reason', ''),
        daily_cost=vd.get('dailyCost'),
        initial_deposit=vd.get('initialDeposit'),
    )
    return Response({'ok': True, 'data': _admission(admission)}, status=201)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def discharge_patient(request, admission_id: int):
    s = DischargeSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    admission = events.discharge_patient(request.user, admission_id,
                                         discharge_date=s.validated_data.get('dischargeDate'))
    return Response({'ok': True, 'data': _admission(admission)})


def _admission(a) -> dict:
    return {
        'id': a.id,
        'admissionId': a.admission_id,
        'status': a.status,
        'admissionDate': a.admission_date,
        'dischargeDate': a.discharge_date,
        'initialDeposit': a.initial_deposit,
    }
