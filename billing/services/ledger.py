"""
Doctor earnings ledger: listing, settlement and backfill.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Max, Min, Q, Sum
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from billing.models import Doctor, DoctorEarning, DoctorPayment, OpdVisit, PathologyOrder, PatientService
from billing.services.audit import record_activity
from billing.services.earnings import billable_event_for, calculate_for_event
from billing.services.sequences import next_sequence_id

logger = logging.getLogger(__name__)

PAID = 'paid'
ALREADY_PAID = 'already_paid'
NOTHING_TO_PAY = 'nothing_to_pay'

RECALCULABLE_SOURCES = (DoctorEarning.SOURCE_SERVICE, DoctorEarning.SOURCE_OPD, DoctorEarning.SOURCE_PATHOLOGY)
PAYMENT_METHODS = {code for code, _ in DoctorPayment.METHOD_CHOICES}


@dataclass
class PaymentOutcome:
    status: str
    payment: Optional[DoctorPayment] = None
    earning: Optional[DoctorEarning] = None
    count: int = 0
    total_amount: Decimal = Decimal('0.00')


def _payment_method(method: Optional[str]) -> str:
    method = method or getattr(settings, 'BILLING_DEFAULT_PAYMENT_METHOD', 'cash')
    if method not in PAYMENT_METHODS:
        raise ValidationError({'paymentMethod': f"unsupported payment method '{method}'"})
    return method


def list_earnings(doctor_id: Optional[int] = None, status: Optional[str] = None):
    qs = DoctorEarning.objects.select_related('doctor', 'patient')
    if doctor_id:
        qs = qs.filter(doctor_id=doctor_id)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by('-service_date', '-id')


@transaction.atomic
def mark_paid(earning_pk: int, *, payment_method: Optional[str] = None, processed_by=None) -> PaymentOutcome:
    """Settle a single earning with its own doctor payment."""
    method = _payment_method(payment_method)
    earning = DoctorEarning.objects.select_for_update().filter(pk=earning_pk).first()
    if not earning:
        raise NotFound('earning not found')
    if earning.status == DoctorEarning.STATUS_PAID:
        return PaymentOutcome(status=ALREADY_PAID, earning=earning)

    earning.status = DoctorEarning.STATUS_PAID
    earning.save(update_fields=['status', 'updated_at'])
    payment = DoctorPayment.objects.create(
        payment_id=next_sequence_id('DPAY'),
        doctor_id=earning.doctor_id,
        payment_date=timezone.now(),
        total_amount=earning.earned_amount,
        payment_method=method,
        start_date=earning.service_date,
        end_date=earning.service_date,
        description=f"Payment for {earning.earning_id}",
        processed_by=processed_by if getattr(processed_by, 'pk', None) else None,
    )
    payment.earnings.add(earning)
    record_activity(
        user=processed_by, activity_type='doctor_earning_paid', title='Doctor earning paid',
        description=f"{earning.earning_id} {earning.earned_amount}",
        entity_type='doctor_payment', entity_id=payment.payment_id,
        metadata={'earning': earning.earning_id, 'amount': earning.earned_amount},
    )
    return PaymentOutcome(status=PAID, payment=payment, earning=earning, count=1,
                          total_amount=earning.earned_amount)


@transaction.atomic
def mark_all_pending_paid(doctor_id: int, *, payment_method: Optional[str] = None, processed_by=None) -> PaymentOutcome:
    """Settle every pending earning of a doctor with one payment."""
    method = _payment_method(payment_method)
    doctor = Doctor.objects.filter(pk=doctor_id).first()
    if not doctor:
        raise NotFound('doctor not found')

    pending = list(
        DoctorEarning.objects.select_for_update()
        .filter(doctor=doctor, status=DoctorEarning.STATUS_PENDING)
        .order_by('service_date', 'id')
    )
    if not pending:
        return PaymentOutcome(status=NOTHING_TO_PAY)

    total = sum((e.earned_amount for e in pending), Decimal('0.00'))
    ids = [e.pk for e in pending]
    DoctorEarning.objects.filter(pk__in=ids).update(status=DoctorEarning.STATUS_PAID, updated_at=timezone.now())
    payment = DoctorPayment.objects.create(
        payment_id=next_sequence_id('DPAY'),
        doctor=doctor,
        payment_date=timezone.now(),
        total_amount=total,
        payment_method=method,
        start_date=min(e.service_date for e in pending),
        end_date=max(e.service_date for e in pending),
        description=f"Payment for {len(pending)} earnings",
        processed_by=processed_by if getattr(processed_by, 'pk', None) else None,
    )
    payment.earnings.add(*ids)
    record_activity(
        user=processed_by, activity_type='doctor_payment', title='Doctor earnings paid',
        description=f"{doctor.name}: {len(pending)} earnings, {total}",
        entity_type='doctor_payment', entity_id=payment.payment_id,
        metadata={'count': len(pending), 'amount': total},
    )
    logger.info("doctor %s paid %s earnings total=%s as %s", doctor.pk, len(pending), total, payment.payment_id)
    return PaymentOutcome(status=PAID, payment=payment, count=len(pending), total_amount=total)


def _sources(sources: Iterable[str], doctor_id: Optional[int]):
    for source in sources:
        if source == DoctorEarning.SOURCE_SERVICE:
            qs = PatientService.objects.select_related('service', 'doctor').exclude(status=PatientService.STATUS_CANCELLED)
        elif source == DoctorEarning.SOURCE_OPD:
            qs = OpdVisit.objects.select_related('doctor').exclude(status=OpdVisit.STATUS_CANCELLED)
        elif source == DoctorEarning.SOURCE_PATHOLOGY:
            qs = PathologyOrder.objects.exclude(status=PathologyOrder.STATUS_CANCELLED)
        else:
            raise ValidationError({'sources': f"unknown source '{source}'"})
        qs = qs.filter(doctor__isnull=False)
        if doctor_id:
            qs = qs.filter(doctor_id=doctor_id)
        yield from qs.order_by('id')


@transaction.atomic
def recalculate(doctor_id: Optional[int] = None, *, sources: Iterable[str] = (DoctorEarning.SOURCE_SERVICE,)) -> dict:
    """Backfill missing earnings for events that have a doctor.

    Returns ``{'processed': n, 'created': m}`` where ``processed`` counts
    the events scanned.
    """
    if doctor_id and not Doctor.objects.filter(pk=doctor_id).exists():
        raise NotFound('doctor not found')
    sources = tuple(sources)
    processed = created = 0
    for obj in _sources(sources, doctor_id):
        processed += 1
        _, was_created = calculate_for_event(billable_event_for(obj))
        if was_created:
            created += 1
    logger.info("recalculated earnings doctor=%s sources=%s processed=%s created=%s",
                doctor_id, ','.join(sources), processed, created)
    return {'processed': processed, 'created': created}


def list_doctor_payments(doctor_id: int):
    if not Doctor.objects.filter(pk=doctor_id).exists():
        raise NotFound('doctor not found')
    return (DoctorPayment.objects.filter(doctor_id=doctor_id)
            .annotate(earnings_count=Count('earnings'))
            .order_by('-payment_date', '-id'))


def earnings_summary(doctor_id: int) -> dict:
    doctor = Doctor.objects.filter(pk=doctor_id).first()
    if not doctor:
        raise NotFound('doctor not found')
    zero = Decimal('0.00')
    agg = DoctorEarning.objects.filter(doctor=doctor).aggregate(
        pending_amount=Sum('earned_amount', filter=Q(status=DoctorEarning.STATUS_PENDING)),
        paid_amount=Sum('earned_amount', filter=Q(status=DoctorEarning.STATUS_PAID)),
        pending_count=Count('id', filter=Q(status=DoctorEarning.STATUS_PENDING)),
        paid_count=Count('id', filter=Q(status=DoctorEarning.STATUS_PAID)),
        first_date=Min('service_date'),
        last_date=Max('service_date'),
    )
    pending_amount = agg['pending_amount'] or zero
    paid_amount = agg['paid_amount'] or zero
    return {
        'doctorId': doctor.pk,
        'doctorName': doctor.name,
        'pendingAmount': pending_amount,
        'paidAmount': paid_amount,
        'totalAmount': pending_amount + paid_amount,
        'pendingCount': agg['pending_count'],
        'paidCount': agg['paid_count'],
        'firstServiceDate': agg['first_date'],
        'lastServiceDate': agg['last_date'],
    }
