"""
Doctor commission rate resolution and management.

A billable event names what was done through a ``ServiceRef``: a
concrete catalog service, an OPD consultation, or a pathology order as
a whole.  The reference is built once where the event enters the
system; lookups below never compare placeholder strings.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from django.db import transaction
from rest_framework.exceptions import NotFound, ValidationError

from billing.models import Doctor, DoctorServiceRate, Service
from billing.services.audit import record_activity

logger = logging.getLogger(__name__)

OPD_CATEGORY = 'opd'
PATHOLOGY_CATEGORY = 'pathology'


@dataclass(frozen=True)
class ConcreteService:
    service_id: Optional[int]


@dataclass(frozen=True)
class OpdConsultation:
    pass


@dataclass(frozen=True)
class PathologyAllTests:
    pass


ServiceRef = Union[ConcreteService, OpdConsultation, PathologyAllTests]


def _active(doctor_id: int):
    # Newest rule wins when several match the same step
    return DoctorServiceRate.objects.filter(doctor_id=doctor_id, is_active=True).order_by('-updated_at', '-id')


def resolve_rate(doctor_id: int, service_ref: ServiceRef, service_name: Optional[str] = None,
                 service_category: Optional[str] = None) -> Optional[DoctorServiceRate]:
    """Find the one active rule that applies, or ``None``.

    Order of lookup, first match wins:

    1. concrete service id
    2. service name and category, when both are known
    3. the doctor's OPD category rule, for consultations
    4. the doctor's order-level pathology rule, for pathology orders
    """
    rates = _active(doctor_id)
    rule = None

    if isinstance(service_ref, ConcreteService) and service_ref.service_id:
        rule = rates.filter(scope=DoctorServiceRate.SCOPE_SERVICE, service_id=service_ref.service_id).first()

    if rule is None and service_name and service_category:
        rule = rates.filter(service_name=service_name, service_category=service_category).first()

    if rule is None and isinstance(service_ref, OpdConsultation):
        rule = rates.filter(service_category=OPD_CATEGORY).first()

    if rule is None and isinstance(service_ref, PathologyAllTests):
        rule = rates.filter(scope=DoctorServiceRate.SCOPE_PATHOLOGY, service_category=PATHOLOGY_CATEGORY).first()

    if rule is None:
        logger.debug("no commission rate for doctor=%s ref=%s name=%s category=%s",
                     doctor_id, service_ref, service_name, service_category)
    return rule


def list_rates(doctor_id: int, *, include_inactive: bool = False):
    qs = DoctorServiceRate.objects.filter(doctor_id=doctor_id).select_related('service')
    if not include_inactive:
        qs = qs.filter(is_active=True)
    return qs.order_by('service_category', 'service_name', '-updated_at')


def _validate_amount(rate_type: str, rate_amount: Decimal) -> None:
    if rate_amount < 0:
        raise ValidationError({'rateAmount': 'must be non-negative'})
    if rate_type == DoctorServiceRate.RATE_PERCENTAGE and rate_amount > 100:
        raise ValidationError({'rateAmount': 'percentage must be between 0 and 100'})


@transaction.atomic
def set_rate(*, doctor_id: int, scope: str, rate_type: str, rate_amount: Decimal,
             service_id: Optional[int] = None, service_name: Optional[str] = None,
             service_category: Optional[str] = None, notes: str = '', created_by=None) -> DoctorServiceRate:
    """Create a rule, superseding any active rule with the same key.

    Superseded rules are deactivated rather than edited so that the
    history behind existing earnings stays readable.
    """
    doctor = Doctor.objects.filter(pk=doctor_id).first()
    if not doctor:
        raise NotFound('doctor not found')
    rate_amount = Decimal(rate_amount)
    _validate_amount(rate_type, rate_amount)

    service = None
    if scope == DoctorServiceRate.SCOPE_OPD:
        service_category = OPD_CATEGORY
        service_name = service_name or 'OPD Consultation'
    elif scope == DoctorServiceRate.SCOPE_PATHOLOGY:
        service_category = PATHOLOGY_CATEGORY
        service_name = service_name or 'Pathology Lab (all tests)'
    else:
        if service_id:
            service = Service.objects.filter(pk=service_id).first()
            if not service:
                raise NotFound('service not found')
            service_name = service_name or service.name
            service_category = service_category or service.category
        if not service_name or not service_category:
            raise ValidationError({'service': 'serviceId or serviceName with serviceCategory is required'})

    existing = DoctorServiceRate.objects.select_for_update().filter(doctor=doctor, scope=scope, is_active=True)
    if scope == DoctorServiceRate.SCOPE_SERVICE:
        if service is not None:
            existing = existing.filter(service=service)
        else:
            existing = existing.filter(service__isnull=True, service_name=service_name,
                                       service_category=service_category)
    superseded = list(existing.values_list('id', flat=True))
    if superseded:
        DoctorServiceRate.objects.filter(id__in=superseded).update(is_active=False)

    rule = DoctorServiceRate.objects.create(
        doctor=doctor,
        scope=scope,
        service=service,
        service_name=service_name,
        service_category=service_category,
        rate_type=rate_type,
        rate_amount=rate_amount,
        notes=notes or '',
        created_by=created_by if getattr(created_by, 'pk', None) else None,
    )
    record_activity(
        user=created_by, activity_type='doctor_rate_set', title='Doctor rate configured',
        description=f"{doctor.name}: {service_name} {rate_type} {rate_amount}",
        entity_type='doctor_service_rate', entity_id=rule.id,
        metadata={'superseded': superseded},
    )
    return rule


def deactivate_rate(rate_id: int, *, user=None) -> DoctorServiceRate:
    rule = DoctorServiceRate.objects.filter(pk=rate_id).first()
    if not rule:
        raise NotFound('rate not found')
    if rule.is_active:
        rule.is_active = False
        rule.save(update_fields=['is_active', 'updated_at'])
        record_activity(
            user=user, activity_type='doctor_rate_deactivated', title='Doctor rate deactivated',
            description=f"{rule.service_name} for doctor {rule.doctor_id}",
            entity_type='doctor_service_rate', entity_id=rule.id,
        )
    return rule
