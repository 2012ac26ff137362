"""
Patient financial ledger.

The ledger is recomputed on every read from the event tables (OPD
visits, service instances, pathology orders, admissions) and from the
payment and discount tables.  Doctor earnings play no part here.

Charges are positive line amounts; payments and discounts are negative,
so the closing balance equals the sum of all line amounts.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from rest_framework.exceptions import NotFound

from billing.models import Admission, OpdVisit, PathologyOrder, Patient, PatientDiscount, PatientPayment, PatientService
from billing.services.costing import money
from billing.services.stay import calculate_stay_days, local_day

CHARGE = 'charge'
PAYMENT = 'payment'
DISCOUNT = 'discount'

# Same-timestamp lines list charges first
_KIND_ORDER = {CHARGE: 0, PAYMENT: 1, DISCOUNT: 2}


@dataclass
class LedgerLine:
    kind: str
    date: datetime
    description: str
    amount: Decimal
    source_type: str
    source_id: str
    balance: Decimal = Decimal('0.00')


@dataclass
class PatientLedger:
    patient: Patient
    lines: List[LedgerLine] = field(default_factory=list)
    total_charges: Decimal = Decimal('0.00')
    total_payments: Decimal = Decimal('0.00')
    total_discounts: Decimal = Decimal('0.00')
    balance: Decimal = Decimal('0.00')


def _match_admission(service: PatientService, admissions: List[Admission]) -> Optional[Admission]:
    """Admission started on the service's calendar day, else the latest one."""
    if not admissions:
        return None
    day = local_day(service.scheduled_date)
    for admission in admissions:
        if local_day(admission.admission_date) == day:
            return admission
    return admissions[0]


def _service_charge(service: PatientService, admissions: List[Admission]) -> LedgerLine:
    if service.service_type == PatientService.TYPE_ADMISSION:
        admission = _match_admission(service, admissions)
        if admission is not None:
            days = calculate_stay_days(admission.admission_date, admission.discharge_date)
            return LedgerLine(
                kind=CHARGE, date=service.scheduled_date,
                description=f"{service.service_name} ({days} day{'s' if days != 1 else ''}, {admission.admission_id})",
                amount=money(service.price * days),
                source_type='service', source_id=str(service.pk),
            )
    amount = service.calculated_amount if service.calculated_amount is not None else service.price
    return LedgerLine(kind=CHARGE, date=service.scheduled_date, description=service.service_name,
                      amount=money(amount), source_type='service', source_id=str(service.pk))


def build_patient_ledger(patient_id: int) -> PatientLedger:
    patient = Patient.objects.filter(pk=patient_id).first()
    if not patient:
        raise NotFound('patient not found')

    lines: List[LedgerLine] = []
    admissions = list(Admission.objects.filter(patient=patient).order_by('-admission_date', '-id'))

    visits = OpdVisit.objects.select_related('doctor').filter(patient=patient).exclude(status=OpdVisit.STATUS_CANCELLED)
    for visit in visits:
        lines.append(LedgerLine(
            kind=CHARGE, date=visit.visit_date, description=f"OPD consultation with {visit.doctor.name}",
            amount=money(visit.effective_fee), source_type='opd_visit', source_id=visit.visit_id,
        ))

    services = PatientService.objects.filter(patient=patient).exclude(status=PatientService.STATUS_CANCELLED)
    for service in services:
        lines.append(_service_charge(service, admissions))

    orders = PathologyOrder.objects.filter(patient=patient).exclude(status=PathologyOrder.STATUS_CANCELLED)
    for order in orders:
        lines.append(LedgerLine(
            kind=CHARGE, date=order.ordered_date, description=f"Pathology order {order.order_id}",
            amount=money(order.total_price), source_type='pathology_order', source_id=order.order_id,
        ))

    for payment in PatientPayment.objects.filter(patient=patient):
        lines.append(LedgerLine(
            kind=PAYMENT, date=payment.payment_date,
            description=payment.reason or f"Payment ({payment.payment_method})",
            amount=-money(payment.amount), source_type='patient_payment', source_id=payment.payment_id,
        ))

    for discount in PatientDiscount.objects.filter(patient=patient):
        lines.append(LedgerLine(
            kind=DISCOUNT, date=discount.discount_date,
            description=f"Discount ({discount.discount_type}): {discount.reason}",
            amount=-money(discount.amount), source_type='patient_discount', source_id=discount.discount_id,
        ))

    for admission in admissions:
        if admission.initial_deposit > 0:
            lines.append(LedgerLine(
                kind=PAYMENT, date=admission.admission_date, description=f"Admission deposit {admission.admission_id}",
                amount=-money(admission.initial_deposit), source_type='admission_deposit',
                source_id=admission.admission_id,
            ))
        if admission.additional_payments > 0:
            lines.append(LedgerLine(
                kind=PAYMENT, date=admission.last_payment_date or admission.admission_date,
                description=f"Additional admission payments {admission.admission_id}",
                amount=-money(admission.additional_payments), source_type='admission_payment',
                source_id=admission.admission_id,
            ))
        if admission.total_discount > 0:
            lines.append(LedgerLine(
                kind=DISCOUNT, date=admission.last_discount_date or admission.admission_date,
                description=admission.last_discount_reason or f"Admission discount {admission.admission_id}",
                amount=-money(admission.total_discount), source_type='admission_discount',
                source_id=admission.admission_id,
            ))

    lines.sort(key=lambda line: (line.date, _KIND_ORDER[line.kind]))

    ledger = PatientLedger(patient=patient, lines=lines)
    running = Decimal('0.00')
    for line in lines:
        running += line.amount
        line.balance = running
        if line.kind == CHARGE:
            ledger.total_charges += line.amount
        elif line.kind == PAYMENT:
            ledger.total_payments -= line.amount
        else:
            ledger.total_discounts -= line.amount
    ledger.balance = ledger.total_charges - ledger.total_payments - ledger.total_discounts
    return ledger
