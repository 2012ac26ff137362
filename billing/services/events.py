"""
Creation of billable events and of patient money in.

Each creator stores its rows in one transaction and registers the
doctor earnings calculation to run after commit, so a failing
calculation never undoes or fails the event itself.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from billing.models import (
    Admission, Doctor, OpdVisit, PathologyOrder, PathologyTest, Patient, PatientDiscount, PatientPayment,
    PatientService, Service,
)
from billing.services.audit import record_activity
from billing.services.costing import calculate_billing, money
from billing.services.earnings import schedule_earning
from billing.services.sequences import next_sequence_id


def _patient(patient_id) -> Patient:
    patient = Patient.objects.filter(pk=patient_id).first()
    if not patient:
        raise NotFound('patient not found')
    return patient


def _doctor(doctor_id, *, required: bool = False) -> Optional[Doctor]:
    if not doctor_id:
        if required:
            raise ValidationError({'doctorId': 'this field is required'})
        return None
    doctor = Doctor.objects.filter(pk=doctor_id).first()
    if not doctor:
        raise NotFound('doctor not found')
    return doctor


@transaction.atomic
def create_patient_service(user, *, patient_id, service_type: str, service_name: Optional[str] = None,
                           doctor_id=None, service_id=None, price=None, billing_type: Optional[str] = None,
                           quantity=None, scheduled_date=None, end_date=None, status=None,
                           notes: str = '') -> PatientService:
    patient = _patient(patient_id)
    doctor = _doctor(doctor_id)
    service = None
    if service_id:
        service = Service.objects.filter(pk=service_id).first()
        if not service:
            raise NotFound('service not found')
    if price is None:
        if service is None:
            raise ValidationError({'price': 'price is required without a catalog service'})
        price = service.price
    billing_type = billing_type or (service.billing_type if service else Service.BILLING_PER_INSTANCE)
    service_name = service_name or (service.name if service else '')
    if not service_name:
        raise ValidationError({'serviceName': 'this field is required'})
    scheduled_date = scheduled_date or timezone.now()

    costing = calculate_billing(price, billing_type, quantity=quantity, start=scheduled_date, end=end_date)
    price = money(price)
    instance = PatientService.objects.create(
        patient=patient,
        doctor=doctor,
        service=service,
        service_type=service_type,
        service_name=service_name,
        status=status or PatientService.STATUS_SCHEDULED,
        scheduled_date=scheduled_date,
        price=price,
        billing_type=billing_type,
        billing_quantity=costing.billing_quantity,
        calculated_amount=costing.total_amount if costing.total_amount != price else None,
        receipt_number=next_sequence_id('RCP'),
        notes=notes or '',
    )
    record_activity(
        user=user, activity_type='service_scheduled', title='Service scheduled',
        description=f"{service_name} for {patient.name}: {costing.details}",
        entity_type='patient_service', entity_id=instance.pk,
        metadata={'amount': costing.total_amount, 'billingType': billing_type},
    )
    schedule_earning(instance)
    return instance


@transaction.atomic
def create_opd_visit(user, *, patient_id, doctor_id, visit_date=None, consultation_fee=None,
                     symptoms: str = '', status=None) -> OpdVisit:
    patient = _patient(patient_id)
    doctor = _doctor(doctor_id, required=True)
    visit = OpdVisit.objects.create(
        visit_id=next_sequence_id('VIS'),
        patient=patient,
        doctor=doctor,
        visit_date=visit_date or timezone.now(),
        consultation_fee=money(consultation_fee) if consultation_fee else None,
        symptoms=symptoms or '',
        status=status or OpdVisit.STATUS_SCHEDULED,
    )
    record_activity(
        user=user, activity_type='opd_visit', title='OPD visit registered',
        description=f"{patient.name} with {doctor.name}, fee {visit.effective_fee}",
        entity_type='opd_visit', entity_id=visit.visit_id,
    )
    schedule_earning(visit)
    return visit


@transaction.atomic
def create_pathology_order(user, *, patient_id, tests: Iterable[dict], doctor_id=None, ordered_date=None,
                           remarks: str = '') -> PathologyOrder:
    """Create an order whose total is the sum of its test prices.

    Each test dict carries ``name``, ``price`` and optionally
    ``category`` and ``serviceId``.
    """
    tests = list(tests)
    if not tests:
        raise ValidationError({'tests': 'at least one test is required'})
    patient = _patient(patient_id)
    doctor = _doctor(doctor_id)
    order = PathologyOrder.objects.create(
        order_id=next_sequence_id('LAB'),
        patient=patient,
        doctor=doctor,
        ordered_date=ordered_date or timezone.now(),
        remarks=remarks or '',
    )
    total = Decimal('0.00')
    for test in tests:
        price = money(test['price'])
        PathologyTest.objects.create(
            order=order,
            service_id=test.get('serviceId') or None,
            test_name=test['name'],
            test_category=test.get('category') or '',
            price=price,
        )
        total += price
    order.total_price = total
    order.save(update_fields=['total_price'])
    record_activity(
        user=user, activity_type='pathology_order', title='Pathology order created',
        description=f"{order.order_id} for {patient.name}: {len(tests)} tests, {total}",
        entity_type='pathology_order', entity_id=order.order_id,
    )
    schedule_earning(order)
    return order


@transaction.atomic
def admit_patient(user, *, patient_id, doctor_id=None, admission_date=None, ward_type: str = '',
                  room_number: str = '', reason: str = '', daily_cost=None, initial_deposit=None) -> Admission:
    patient = _patient(patient_id)
    if Admission.objects.filter(patient=patient, status=Admission.STATUS_ADMITTED).exists():
        raise ValidationError({'patientId': 'patient is already admitted'})
    doctor = _doctor(doctor_id)
    deposit = money(initial_deposit or 0)
    admission = Admission.objects.create(
        admission_id=next_sequence_id('ADM'),
        patient=patient,
        doctor=doctor,
        admission_date=admission_date or timezone.now(),
        ward_type=ward_type or '',
        room_number=room_number or '',
        reason=reason or '',
        daily_cost=money(daily_cost or 0),
        initial_deposit=deposit,
        last_payment_date=timezone.now() if deposit > 0 else None,
    )
    record_activity(
        user=user, activity_type='patient_admitted', title='Patient admitted',
        description=f"{patient.name} admitted to {ward_type or 'ward'} {room_number}".strip(),
        entity_type='admission', entity_id=admission.admission_id,
        metadata={'deposit': deposit},
    )
    return admission


@transaction.atomic
def discharge_patient(user, admission_pk, *, discharge_date=None) -> Admission:
    admission = Admission.objects.select_for_update().filter(pk=admission_pk).first()
    if not admission:
        raise NotFound('admission not found')
    if admission.status == Admission.STATUS_DISCHARGED:
        raise ValidationError({'status': 'admission is already discharged'})
    discharge_date = discharge_date or timezone.now()
    if discharge_date < admission.admission_date:
        raise ValidationError({'dischargeDate': 'discharge cannot precede admission'})
    admission.discharge_date = discharge_date
    admission.status = Admission.STATUS_DISCHARGED
    admission.save(update_fields=['discharge_date', 'status'])
    record_activity(
        user=user, activity_type='patient_discharged', title='Patient discharged',
        description=f"{admission.admission_id} discharged",
        entity_type='admission', entity_id=admission.admission_id,
    )
    return admission


@transaction.atomic
def record_patient_payment(user, *, patient_id, amount, payment_method: str = 'cash', reason: str = '',
                           payment_date=None) -> PatientPayment:
    patient = _patient(patient_id)
    amount = money(amount)
    if amount <= 0:
        raise ValidationError({'amount': 'must be positive'})
    payment = PatientPayment.objects.create(
        payment_id=next_sequence_id('PAY'),
        patient=patient,
        amount=amount,
        payment_method=payment_method,
        payment_date=payment_date or timezone.now(),
        reason=reason or '',
        receipt_number=next_sequence_id('RCP'),
        processed_by=user if getattr(user, 'pk', None) else None,
    )
    record_activity(
        user=user, activity_type='patient_payment', title='Payment received',
        description=f"{amount} from {patient.name} ({payment_method})",
        entity_type='patient_payment', entity_id=payment.payment_id,
        metadata={'amount': amount},
    )
    return payment


@transaction.atomic
def record_patient_discount(user, *, patient_id, amount, reason: str, discount_type: str = 'manual',
                            discount_date=None) -> PatientDiscount:
    patient = _patient(patient_id)
    amount = money(amount)
    if amount <= 0:
        raise ValidationError({'amount': 'must be positive'})
    discount = PatientDiscount.objects.create(
        discount_id=next_sequence_id('DISC'),
        patient=patient,
        amount=amount,
        discount_type=discount_type,
        reason=reason,
        discount_date=discount_date or timezone.now(),
        approved_by=user if getattr(user, 'pk', None) else None,
    )
    record_activity(
        user=user, activity_type='patient_discount', title='Discount applied',
        description=f"{amount} for {patient.name}: {reason}",
        entity_type='patient_discount', entity_id=discount.discount_id,
        metadata={'amount': amount, 'type': discount_type},
    )
    return discount
