from datetime import datetime
from decimal import Decimal
from unittest import mock
from zoneinfo import ZoneInfo

import pytest
from django.db import DatabaseError
from rest_framework.exceptions import NotFound

from billing.models import (
    Admission, OpdVisit, PathologyOrder, PathologyTest, PatientDiscount, PatientPayment, PatientService,
)
from billing.services.patient_ledger import build_patient_ledger

pytestmark = pytest.mark.django_db

IST = ZoneInfo('Asia/Kolkata')


def at(day, hour=0, minute=0):
    return datetime(2024, 5, day, hour, minute, tzinfo=IST)


@pytest.fixture
def stay(doctor, patient):
    """A full episode: OPD visit, three day admission, tests, payment and discount."""
    OpdVisit.objects.create(visit_id='VIS-2024-001', patient=patient, doctor=doctor, visit_date=at(1, 9))
    admission = Admission.objects.create(
        admission_id='ADM-2024-001', patient=patient, doctor=doctor,
        admission_date=at(1, 10), discharge_date=at(3, 14), status=Admission.STATUS_DISCHARGED,
        initial_deposit=Decimal('500'),
    )
    PatientService.objects.create(patient=patient, doctor=doctor, service_type='admission',
                                  service_name='General ward', price=Decimal('1000'), scheduled_date=at(1, 10, 30))
    PatientService.objects.create(patient=patient, doctor=doctor, service_type='xray',
                                  service_name='X-Ray Chest', price=Decimal('300'), scheduled_date=at(2, 11))
    PatientService.objects.create(patient=patient, service_type='xray', service_name='Cancelled scan',
                                  price=Decimal('999'), scheduled_date=at(2, 12),
                                  status=PatientService.STATUS_CANCELLED)
    order = PathologyOrder.objects.create(order_id='LAB-2024-001', patient=patient, doctor=doctor,
                                          ordered_date=at(2, 13), total_price=Decimal('450'))
    for name, price in (('CBC', '150'), ('LFT', '200'), ('Lipid profile', '100')):
        PathologyTest.objects.create(order=order, test_name=name, price=Decimal(price))
    PatientPayment.objects.create(payment_id='PAY-2024-001', patient=patient, amount=Decimal('1000'),
                                  payment_date=at(3, 15))
    PatientDiscount.objects.create(discount_id='DISC-2024-001', patient=patient, amount=Decimal('200'),
                                   reason='Senior citizen', discount_type='senior_citizen', discount_date=at(3, 16))
    return admission


def test_ledger_totals_and_balance_identity(patient, stay):
    ledger = build_patient_ledger(patient.id)

    assert ledger.total_charges == Decimal('4250.00')
    assert ledger.total_payments == Decimal('1500.00')
    assert ledger.total_discounts == Decimal('200.00')
    assert ledger.balance == Decimal('2550.00')
    assert ledger.balance == ledger.total_charges - ledger.total_payments - ledger.total_discounts
    assert ledger.balance == sum(line.amount for line in ledger.lines)
    assert ledger.lines[-1].balance == ledger.balance


def test_ledger_lines_are_chronological_with_running_balance(patient, stay):
    lines = build_patient_ledger(patient.id).lines
    assert [line.date for line in lines] == sorted(line.date for line in lines)
    assert lines[0].source_type == 'opd_visit'
    assert lines[0].amount == Decimal('500.00')

    running = Decimal('0')
    for line in lines:
        running += line.amount
        assert line.balance == running


def test_admission_service_is_priced_per_stay_day(patient, stay):
    lines = build_patient_ledger(patient.id).lines
    ward, = [line for line in lines if line.description.startswith('General ward')]
    assert ward.amount == Decimal('3000.00')
    assert '3 days' in ward.description


def test_pathology_order_is_a_single_line(patient, stay):
    lines = build_patient_ledger(patient.id).lines
    pathology = [line for line in lines if line.source_type == 'pathology_order']
    assert len(pathology) == 1
    assert pathology[0].amount == Decimal('450.00')


def test_cancelled_services_are_not_charged(patient, stay):
    lines = build_patient_ledger(patient.id).lines
    assert not [line for line in lines if line.description == 'Cancelled scan']


def test_admission_service_without_admission_is_a_regular_charge(patient):
    PatientService.objects.create(patient=patient, service_type='admission', service_name='Day care bed',
                                  price=Decimal('800'), scheduled_date=at(4, 9))
    ledger = build_patient_ledger(patient.id)
    assert [line.amount for line in ledger.lines] == [Decimal('800.00')]


def test_admission_service_falls_back_to_latest_admission(patient):
    Admission.objects.create(admission_id='ADM-2024-002', patient=patient, admission_date=at(1, 10),
                             discharge_date=at(1, 20), status=Admission.STATUS_DISCHARGED)
    Admission.objects.create(admission_id='ADM-2024-003', patient=patient, admission_date=at(5, 10),
                             discharge_date=at(6, 10), status=Admission.STATUS_DISCHARGED)
    PatientService.objects.create(patient=patient, service_type='admission', service_name='ICU bed',
                                  price=Decimal('2000'), scheduled_date=at(7, 9))
    line, = build_patient_ledger(patient.id).lines
    assert line.amount == Decimal('4000.00')
    assert 'ADM-2024-003' in line.description


def test_legacy_admission_money_fields_become_lines(patient):
    Admission.objects.create(
        admission_id='ADM-2024-004', patient=patient, admission_date=at(1, 10),
        initial_deposit=Decimal('1000'), additional_payments=Decimal('250'), last_payment_date=at(2, 10),
        total_discount=Decimal('100'), last_discount_date=at(2, 11), last_discount_reason='Staff discount',
    )
    ledger = build_patient_ledger(patient.id)
    assert ledger.total_payments == Decimal('1250.00')
    assert ledger.total_discounts == Decimal('100.00')
    assert ledger.balance == Decimal('-1350.00')
    assert {line.source_type for line in ledger.lines} == {
        'admission_deposit', 'admission_payment', 'admission_discount',
    }


def test_unknown_patient():
    with pytest.raises(NotFound):
        build_patient_ledger(424242)


def test_failing_source_query_propagates(patient, stay):
    with mock.patch('billing.services.patient_ledger._service_charge', side_effect=DatabaseError('boom')):
        with pytest.raises(DatabaseError):
            build_patient_ledger(patient.id)
