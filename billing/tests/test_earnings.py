from decimal import Decimal
from unittest import mock

import pytest
from django.db import DatabaseError
from rest_framework.exceptions import NotFound

from billing.models import (
    DoctorEarning, DoctorPayment, DoctorServiceRate, OpdVisit, PathologyOrder, PathologyTest, PatientService,
)
from billing.services import events, ledger
from billing.services.earnings import calculate_earning
from billing.services.rates import (
    ConcreteService, OpdConsultation, PathologyAllTests, deactivate_rate, resolve_rate, set_rate,
)
from billing.services.sequences import next_sequence_id

pytestmark = pytest.mark.django_db


def service_instance(patient, doctor, service=None, **kwargs):
    fields = dict(
        patient=patient, doctor=doctor, service=service,
        service_type='xray', service_name=service.name if service else 'Dressing',
        price=service.price if service else Decimal('200'),
    )
    fields.update(kwargs)
    return PatientService.objects.create(**fields)


def test_sequence_ids_are_per_prefix_and_year():
    assert next_sequence_id('EARN', year=2024) == 'EARN-2024-001'
    assert next_sequence_id('EARN', year=2024) == 'EARN-2024-002'
    assert next_sequence_id('EARN', year=2025) == 'EARN-2025-001'
    assert next_sequence_id('DPAY', year=2024) == 'DPAY-2024-001'


def test_percentage_rate_on_concrete_service(doctor, patient, xray):
    set_rate(doctor_id=doctor.id, scope='service', service_id=xray.id, rate_type='percentage', rate_amount=10)
    earning = calculate_earning(service_instance(patient, doctor, xray))
    assert earning.earned_amount == Decimal('50.00')
    assert earning.rate_type == 'percentage'
    assert earning.service_price == Decimal('500.00')
    assert earning.status == DoctorEarning.STATUS_PENDING
    assert earning.earning_id.startswith('EARN-')


def test_flat_rate_ignores_price(doctor, patient, xray):
    set_rate(doctor_id=doctor.id, scope='service', service_id=xray.id, rate_type='amount', rate_amount=200)
    earning = calculate_earning(service_instance(patient, doctor, xray, price=Decimal('1234')))
    assert earning.earned_amount == Decimal('200.00')


def test_calculated_amount_is_the_base_when_set(doctor, patient, xray):
    set_rate(doctor_id=doctor.id, scope='service', service_id=xray.id, rate_type='percentage', rate_amount=10)
    earning = calculate_earning(service_instance(patient, doctor, xray, calculated_amount=Decimal('1500')))
    assert earning.earned_amount == Decimal('150.00')


def test_calculation_is_idempotent(doctor, patient, xray):
    set_rate(doctor_id=doctor.id, scope='service', service_id=xray.id, rate_type='percentage', rate_amount=10)
    instance = service_instance(patient, doctor, xray)
    first = calculate_earning(instance)
    second = calculate_earning(instance)
    assert first.pk == second.pk
    assert DoctorEarning.objects.filter(source_type='service', source_id=instance.pk).count() == 1


def test_no_rate_means_no_earning(doctor, patient, xray):
    assert calculate_earning(service_instance(patient, doctor, xray)) is None
    assert DoctorEarning.objects.count() == 0


def test_no_doctor_or_zero_price_means_no_earning(doctor, patient, xray):
    set_rate(doctor_id=doctor.id, scope='service', service_id=xray.id, rate_type='amount', rate_amount=100)
    assert calculate_earning(service_instance(patient, None, xray)) is None
    assert calculate_earning(service_instance(patient, doctor, xray, price=Decimal('0'))) is None
    assert DoctorEarning.objects.count() == 0


def test_name_and_category_fallback(doctor, patient):
    set_rate(doctor_id=doctor.id, scope='service', service_name='Dressing', service_category='diagnostics',
             rate_type='amount', rate_amount=30)
    instance = service_instance(patient, doctor, None, service_type='diagnostics')
    earning = calculate_earning(instance)
    assert earning.earned_amount == Decimal('30.00')


def test_service_id_match_wins_over_name_match(doctor, xray):
    by_name = set_rate(doctor_id=doctor.id, scope='service', service_name=xray.name,
                       service_category='diagnostics', rate_type='amount', rate_amount=10)
    by_id = set_rate(doctor_id=doctor.id, scope='service', service_id=xray.id, service_name='X-Ray (catalog)',
                     rate_type='amount', rate_amount=20)
    assert resolve_rate(doctor.id, ConcreteService(xray.id), xray.name, 'diagnostics') == by_id
    assert resolve_rate(doctor.id, ConcreteService(None), xray.name, 'diagnostics') == by_name


def test_most_recent_rule_wins_a_tie(doctor, xray):
    common = dict(doctor=doctor, scope='service', service=xray, service_name=xray.name,
                  service_category='diagnostics', rate_type='amount')
    DoctorServiceRate.objects.create(rate_amount=Decimal('10'), **common)
    newer = DoctorServiceRate.objects.create(rate_amount=Decimal('20'), **common)
    assert resolve_rate(doctor.id, ConcreteService(xray.id)) == newer


def test_inactive_rules_are_ignored(doctor, xray):
    rule = set_rate(doctor_id=doctor.id, scope='service', service_id=xray.id, rate_type='amount', rate_amount=10)
    deactivate_rate(rule.id)
    assert resolve_rate(doctor.id, ConcreteService(xray.id)) is None


def test_superseding_a_rate_keeps_existing_earnings(doctor, patient, xray):
    old = set_rate(doctor_id=doctor.id, scope='service', service_id=xray.id, rate_type='amount', rate_amount=100)
    first = calculate_earning(service_instance(patient, doctor, xray))
    new = set_rate(doctor_id=doctor.id, scope='service', service_id=xray.id, rate_type='amount', rate_amount=150)
    second = calculate_earning(service_instance(patient, doctor, xray))

    old.refresh_from_db()
    first.refresh_from_db()
    assert old.is_active is False and new.is_active is True
    assert first.earned_amount == Decimal('100.00')
    assert second.earned_amount == Decimal('150.00')


def test_percentage_above_hundred_is_rejected(doctor, xray):
    from rest_framework.exceptions import ValidationError
    with pytest.raises(ValidationError):
        set_rate(doctor_id=doctor.id, scope='service', service_id=xray.id, rate_type='percentage', rate_amount=120)


def test_opd_visit_uses_doctor_default_fee(doctor, patient):
    set_rate(doctor_id=doctor.id, scope='opd_consultation', rate_type='percentage', rate_amount=20)
    assert resolve_rate(doctor.id, OpdConsultation()) is not None
    visit = OpdVisit.objects.create(visit_id='VIS-2024-001', patient=patient, doctor=doctor)
    earning = calculate_earning(visit)
    assert earning.earned_amount == Decimal('100.00')
    assert earning.source_type == DoctorEarning.SOURCE_OPD


def test_pathology_is_billed_once_per_order(doctor, patient):
    set_rate(doctor_id=doctor.id, scope='pathology_all', rate_type='percentage', rate_amount=10)
    order = PathologyOrder.objects.create(order_id='LAB-2024-001', patient=patient, doctor=doctor,
                                          total_price=Decimal('450'))
    for name, price in (('CBC', '150'), ('LFT', '200'), ('Lipid profile', '100')):
        PathologyTest.objects.create(order=order, test_name=name, price=Decimal(price))

    assert resolve_rate(doctor.id, PathologyAllTests()) is not None
    assert str(order.tests.get(test_name='CBC')) == 'CBC (LAB-2024-001)'
    earning = calculate_earning(order)
    assert earning.earned_amount == Decimal('45.00')
    assert DoctorEarning.objects.filter(doctor=doctor).count() == 1


def test_recalculate_backfills_missing_earnings(doctor, patient, xray):
    instance = service_instance(patient, doctor, xray)
    service_instance(patient, None, xray)
    set_rate(doctor_id=doctor.id, scope='service', service_id=xray.id, rate_type='percentage', rate_amount=10)

    result = ledger.recalculate()
    assert result['processed'] >= 1
    assert result['created'] == 1
    assert DoctorEarning.objects.get().source_id == instance.pk

    again = ledger.recalculate(doctor.id)
    assert again == {'processed': 1, 'created': 0}


def test_recalculate_skips_cancelled_and_can_scan_opd(doctor, patient, xray):
    service_instance(patient, doctor, xray, status=PatientService.STATUS_CANCELLED)
    set_rate(doctor_id=doctor.id, scope='service', service_id=xray.id, rate_type='amount', rate_amount=50)
    set_rate(doctor_id=doctor.id, scope='opd_consultation', rate_type='amount', rate_amount=75)
    OpdVisit.objects.create(visit_id='VIS-2024-009', patient=patient, doctor=doctor)

    assert ledger.recalculate() == {'processed': 0, 'created': 0}
    assert ledger.recalculate(sources=('service', 'opd_visit')) == {'processed': 1, 'created': 1}


def _pending_earnings(doctor, patient, xray, amounts):
    set_rate(doctor_id=doctor.id, scope='service', service_id=xray.id, rate_type='percentage', rate_amount=10)
    return [calculate_earning(service_instance(patient, doctor, xray, price=Decimal(a))) for a in amounts]


def test_mark_paid_then_already_paid(doctor, patient, xray, billing_user):
    earning, = _pending_earnings(doctor, patient, xray, ['500'])
    outcome = ledger.mark_paid(earning.pk, payment_method='cheque', processed_by=billing_user)
    assert outcome.status == 'paid'
    assert outcome.payment.total_amount == Decimal('50.00')
    assert list(outcome.payment.earnings.all()) == [earning]

    again = ledger.mark_paid(earning.pk, payment_method='cash', processed_by=billing_user)
    assert again.status == 'already_paid'
    assert again.payment is None
    assert DoctorPayment.objects.count() == 1


def test_mark_paid_unknown_earning():
    with pytest.raises(NotFound):
        ledger.mark_paid(999999)


def test_mark_all_pending_paid_creates_one_payment(doctor, patient, xray, billing_user):
    earnings = _pending_earnings(doctor, patient, xray, ['500', '1000', '250'])
    outcome = ledger.mark_all_pending_paid(doctor.id, payment_method='bank_transfer', processed_by=billing_user)

    assert outcome.status == 'paid'
    assert outcome.count == 3
    assert outcome.payment.total_amount == Decimal('175.00')
    assert outcome.payment.earnings.count() == 3
    assert not DoctorEarning.objects.filter(doctor=doctor, status='pending').exists()
    assert outcome.payment.start_date == min(e.service_date for e in earnings)

    assert ledger.mark_all_pending_paid(doctor.id).status == 'nothing_to_pay'
    assert DoctorPayment.objects.count() == 1


def test_earnings_summary(doctor, patient, xray):
    earnings = _pending_earnings(doctor, patient, xray, ['500', '1000'])
    ledger.mark_paid(earnings[0].pk)
    summary = ledger.earnings_summary(doctor.id)
    assert summary['paidAmount'] == Decimal('50.00')
    assert summary['pendingAmount'] == Decimal('100.00')
    assert summary['pendingCount'] == 1 and summary['paidCount'] == 1


def test_opd_and_pathology_calculation_is_idempotent(doctor, patient):
    set_rate(doctor_id=doctor.id, scope='opd_consultation', rate_type='percentage', rate_amount=20)
    set_rate(doctor_id=doctor.id, scope='pathology_all', rate_type='amount', rate_amount=40)
    visit = OpdVisit.objects.create(visit_id='VIS-2024-020', patient=patient, doctor=doctor)
    order = PathologyOrder.objects.create(order_id='LAB-2024-020', patient=patient, doctor=doctor,
                                          total_price=Decimal('300'))

    for obj, source_type in ((visit, 'opd_visit'), (order, 'pathology_order')):
        first = calculate_earning(obj)
        second = calculate_earning(obj)
        assert first.pk == second.pk
        assert DoctorEarning.objects.filter(source_type=source_type, source_id=obj.pk).count() == 1
    assert DoctorEarning.objects.count() == 2


def test_cancelled_service_earns_nothing(doctor, patient, xray):
    set_rate(doctor_id=doctor.id, scope='service', service_id=xray.id, rate_type='amount', rate_amount=100)
    instance = service_instance(patient, doctor, xray, status=PatientService.STATUS_CANCELLED)
    assert calculate_earning(instance) is None
    assert not DoctorEarning.objects.exists()


def test_cancelled_visit_earns_nothing(doctor, patient):
    set_rate(doctor_id=doctor.id, scope='opd_consultation', rate_type='amount', rate_amount=60)
    visit = OpdVisit.objects.create(visit_id='VIS-2024-021', patient=patient, doctor=doctor,
                                    status=OpdVisit.STATUS_CANCELLED)
    assert calculate_earning(visit) is None
    assert not DoctorEarning.objects.exists()


def test_cancelled_pathology_order_earns_nothing(doctor, patient):
    set_rate(doctor_id=doctor.id, scope='pathology_all', rate_type='percentage', rate_amount=10)
    order = PathologyOrder.objects.create(order_id='LAB-2024-021', patient=patient, doctor=doctor,
                                          total_price=Decimal('450'), status=PathologyOrder.STATUS_CANCELLED)
    assert calculate_earning(order) is None
    assert not DoctorEarning.objects.exists()


def test_cancelled_service_created_through_events(doctor, patient, xray, billing_user,
                                                  django_capture_on_commit_callbacks):
    set_rate(doctor_id=doctor.id, scope='service', service_id=xray.id, rate_type='amount', rate_amount=100)
    with django_capture_on_commit_callbacks(execute=True):
        events.create_patient_service(billing_user, patient_id=patient.id, doctor_id=doctor.id,
                                      service_id=xray.id, service_type='xray',
                                      status=PatientService.STATUS_CANCELLED)
    assert not DoctorEarning.objects.exists()


def test_mark_all_pending_paid_is_all_or_nothing(doctor, patient, xray):
    _pending_earnings(doctor, patient, xray, ['500', '1000'])
    with mock.patch.object(DoctorPayment.objects, 'create', side_effect=DatabaseError('boom')):
        with pytest.raises(DatabaseError):
            ledger.mark_all_pending_paid(doctor.id)

    assert DoctorEarning.objects.filter(doctor=doctor, status='pending').count() == 2
    assert not DoctorPayment.objects.exists()


def test_recalculate_is_all_or_nothing(doctor, patient, xray):
    service_instance(patient, doctor, xray)
    service_instance(patient, doctor, xray)
    set_rate(doctor_id=doctor.id, scope='service', service_id=xray.id, rate_type='amount', rate_amount=50)

    real = ledger.calculate_for_event
    calls = []

    def fail_on_second(event):
        calls.append(event.source_id)
        if len(calls) == 2:
            raise DatabaseError('boom')
        return real(event)

    with mock.patch('billing.services.ledger.calculate_for_event', side_effect=fail_on_second):
        with pytest.raises(DatabaseError):
            ledger.recalculate(doctor.id)

    assert len(calls) == 2
    assert not DoctorEarning.objects.exists()


def test_recalculate_unknown_doctor():
    with pytest.raises(NotFound):
        ledger.recalculate(424242)
