"""
Doctor earnings calculation.

Every billable event (service instance, OPD visit, pathology order)
is turned into at most one ``DoctorEarning``.  Calculation is
idempotent on ``(source_type, source_id)``; the database constraint
backs that up when two writers race.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from django.db import IntegrityError, transaction

from billing.models import DoctorEarning, DoctorServiceRate, OpdVisit, PathologyOrder, PatientService
from billing.services.costing import money
from billing.services.rates import (
    ConcreteService, OpdConsultation, OPD_CATEGORY, PATHOLOGY_CATEGORY, PathologyAllTests, ServiceRef,
    resolve_rate,
)
from billing.services.sequences import next_sequence_id

logger = logging.getLogger(__name__)


@dataclass
class BillableEvent:
    source_type: str
    source_id: int
    doctor_id: Optional[int]
    patient_id: int
    service_ref: ServiceRef
    service_name: str
    service_category: Optional[str]
    service_date: datetime
    base_amount: Decimal
    service_id: Optional[int] = None
    patient_service_id: Optional[int] = None
    cancelled: bool = False


def billable_event_for(obj) -> BillableEvent:
    """Describe a stored event in the terms the calculator needs."""
    if isinstance(obj, PatientService):
        base = obj.calculated_amount if obj.calculated_amount is not None else obj.price
        return BillableEvent(
            source_type=DoctorEarning.SOURCE_SERVICE,
            source_id=obj.pk,
            doctor_id=obj.doctor_id,
            patient_id=obj.patient_id,
            service_ref=ConcreteService(obj.service_id),
            service_name=obj.service_name,
            service_category=obj.service.category if obj.service_id else obj.service_type,
            service_date=obj.scheduled_date,
            base_amount=base or Decimal('0'),
            service_id=obj.service_id,
            patient_service_id=obj.pk,
            cancelled=obj.status == PatientService.STATUS_CANCELLED,
        )
    if isinstance(obj, OpdVisit):
        return BillableEvent(
            source_type=DoctorEarning.SOURCE_OPD,
            source_id=obj.pk,
            doctor_id=obj.doctor_id,
            patient_id=obj.patient_id,
            service_ref=OpdConsultation(),
            service_name='OPD Consultation',
            service_category=OPD_CATEGORY,
            service_date=obj.visit_date,
            base_amount=obj.effective_fee,
            cancelled=obj.status == OpdVisit.STATUS_CANCELLED,
        )
    if isinstance(obj, PathologyOrder):
        return BillableEvent(
            source_type=DoctorEarning.SOURCE_PATHOLOGY,
            source_id=obj.pk,
            doctor_id=obj.doctor_id,
            patient_id=obj.patient_id,
            service_ref=PathologyAllTests(),
            service_name=f"Pathology order {obj.order_id}",
            service_category=PATHOLOGY_CATEGORY,
            service_date=obj.ordered_date,
            base_amount=obj.total_price or Decimal('0'),
            cancelled=obj.status == PathologyOrder.STATUS_CANCELLED,
        )
    raise TypeError(f"not a billable event: {type(obj).__name__}")


def earned_amount(rule: DoctorServiceRate, base: Decimal) -> Decimal:
    if rule.rate_type == DoctorServiceRate.RATE_PERCENTAGE:
        return money(Decimal(base) * rule.rate_amount / Decimal('100'))
    return money(rule.rate_amount)


def _existing(event: BillableEvent) -> Optional[DoctorEarning]:
    return DoctorEarning.objects.filter(source_type=event.source_type, source_id=event.source_id).first()


def calculate_for_event(event: BillableEvent) -> Tuple[Optional[DoctorEarning], bool]:
    """Return ``(earning, created)`` for one event.

    ``earning`` is ``None`` when there is nothing to earn: no doctor, a
    cancelled event, a non-positive base amount, or no active rate for
    the doctor.
    """
    found = _existing(event)
    if found is not None:
        return found, False
    if event.cancelled:
        return None, False
    if not event.doctor_id or event.base_amount is None or event.base_amount <= 0:
        return None, False

    rule = resolve_rate(event.doctor_id, event.service_ref, event.service_name, event.service_category)
    if rule is None:
        return None, False

    amount = earned_amount(rule, event.base_amount)
    try:
        with transaction.atomic():
            earning = DoctorEarning.objects.create(
                earning_id=next_sequence_id('EARN'),
                doctor_id=event.doctor_id,
                patient_id=event.patient_id,
                source_type=event.source_type,
                source_id=event.source_id,
                patient_service_id=event.patient_service_id,
                service_id=event.service_id,
                service_name=event.service_name,
                service_category=event.service_category or rule.service_category,
                service_date=event.service_date,
                rate_type=rule.rate_type,
                rate_amount=rule.rate_amount,
                service_price=money(event.base_amount),
                earned_amount=amount,
                status=DoctorEarning.STATUS_PENDING,
            )
    except IntegrityError:
        # Another writer stored the same event first
        found = _existing(event)
        if found is None:
            raise
        return found, False

    logger.info("earning %s doctor=%s %s:%s amount=%s", earning.earning_id, event.doctor_id,
                event.source_type, event.source_id, amount)
    return earning, True


def calculate_earning(obj) -> Optional[DoctorEarning]:
    """Calculate and store the earning for a service, OPD visit or pathology order."""
    event = obj if isinstance(obj, BillableEvent) else billable_event_for(obj)
    earning, _ = calculate_for_event(event)
    return earning


def calculate_earning_quietly(obj) -> Optional[DoctorEarning]:
    try:
        return calculate_earning(obj)
    except Exception:
        logger.exception("earning calculation failed for %s %s", type(obj).__name__, getattr(obj, 'pk', None))
        return None


def schedule_earning(obj) -> None:
    """Run the earnings calculation once the surrounding transaction commits."""
    transaction.on_commit(lambda: calculate_earning_quietly(obj))
