"""
Integration tests for the billing API.

These tests drive the REST endpoints end to end: rate configuration,
event registration with the earnings calculation that runs after
commit, doctor settlement and the patient ledger.  They use Django REST
framework's APIClient within the APITestCase base class.
"""
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.urls import reverse
from rest_framework.test import APIClient, APITestCase

from billing.models import Doctor, DoctorEarning, OpdVisit, Patient, Service, User


class BillingAPITests(APITestCase):
    def setUp(self) -> None:
        self.billing_user = User.objects.create_user(username='billing1', password='P@ssw0rd1',
                                                     role=User.ROLE_BILLING)
        self.receptionist = User.objects.create_user(username='front1', password='P@ssw0rd1',
                                                     role=User.ROLE_RECEPTIONIST)
        self.admin_user = User.objects.create_user(username='admin1', password='P@ssw0rd1', role=User.ROLE_ADMIN)
        self.doctor = Doctor.objects.create(name='Dr. Iyer', consultation_fee=Decimal('400'))
        self.patient = Patient.objects.create(patient_id='PT-2024-010', name='Anita Rao')
        self.ward = Service.objects.create(name='General ward', category='admission', price=Decimal('1000'),
                                           billing_type=Service.BILLING_PER_DATE)
        self.client.force_authenticate(user=self.billing_user)

    def set_opd_rate(self, percentage='20'):
        r = self.client.post(f'/api/doctors/{self.doctor.id}/rates',
                             {'scope': 'opd_consultation', 'rateType': 'percentage', 'rateAmount': percentage},
                             format='json')
        self.assertEqual(r.status_code, 201)
        return r

    def register_visit(self, fee='500'):
        with self.captureOnCommitCallbacks(execute=True):
            r = self.client.post('/api/opd-visits',
                                 {'patientId': self.patient.id, 'doctorId': self.doctor.id, 'consultationFee': fee},
                                 format='json')
        self.assertEqual(r.status_code, 201)
        return r

    def test_opd_visit_earns_percentage_of_fee(self):
        self.set_opd_rate('20')
        visit = self.register_visit('500')
        self.assertTrue(visit.data['data']['visitId'].startswith('VIS-'))

        r = self.client.get('/api/earnings', {'doctorId': self.doctor.id})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(len(r.data['data']), 1)
        earning = r.data['data'][0]
        self.assertEqual(earning['earnedAmount'], Decimal('100.00'))
        self.assertEqual(earning['sourceType'], 'opd_visit')
        self.assertEqual(earning['status'], 'pending')

        r = self.client.post(reverse('mark_earning_paid', args=[earning['id']]), {}, format='json')
        self.assertEqual(r.data['status'], 'paid')
        self.assertEqual(r.data['payment']['totalAmount'], Decimal('100.00'))
        self.assertEqual(r.data['payment']['doctorId'], self.doctor.id)

    def test_visit_without_fee_earns_on_doctor_default(self):
        self.set_opd_rate('25')
        self.register_visit(None)
        earning = DoctorEarning.objects.get(doctor=self.doctor)
        self.assertEqual(earning.earned_amount, Decimal('100.00'))

    def test_failing_calculation_does_not_fail_the_request(self):
        self.set_opd_rate('20')
        with mock.patch('billing.services.earnings.calculate_earning', side_effect=RuntimeError('db down')):
            self.register_visit('500')
        self.assertEqual(OpdVisit.objects.count(), 1)
        self.assertFalse(DoctorEarning.objects.exists())

    def test_mark_all_paid_and_nothing_left(self):
        self.set_opd_rate('20')
        self.register_visit('500')
        self.register_visit('1000')

        url = f'/api/doctors/{self.doctor.id}/earnings/mark-all-paid'
        r = self.client.post(url, {'paymentMethod': 'bank_transfer'}, format='json')
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.data['status'], 'paid')
        self.assertEqual(r.data['count'], 2)
        self.assertEqual(r.data['payment']['totalAmount'], Decimal('300.00'))

        r = self.client.post(url, {}, format='json')
        self.assertEqual(r.status_code, 200)
        self.assertTrue(r.data['ok'])
        self.assertEqual(r.data['status'], 'nothing_to_pay')

        r = self.client.get(f'/api/doctors/{self.doctor.id}/payments')
        self.assertEqual(len(r.data['data']), 1)
        self.assertEqual(r.data['data'][0]['earningsCount'], 2)

    def test_mark_single_earning_paid_twice(self):
        self.set_opd_rate('20')
        self.register_visit('500')
        earning = DoctorEarning.objects.get()
        url = reverse('mark_earning_paid', args=[earning.id])
        self.assertEqual(self.client.post(url, {}, format='json').data['status'], 'paid')
        self.assertEqual(self.client.post(url, {}, format='json').data['status'], 'already_paid')

    def test_unknown_earning_is_normalized_404(self):
        r = self.client.post('/api/earnings/999999/mark-paid', {}, format='json')
        self.assertEqual(r.status_code, 404)
        self.assertIs(r.data['ok'], False)
        self.assertEqual(r.data['error']['code'], 'not_found')

    def test_percentage_over_hundred_is_rejected(self):
        r = self.client.post(f'/api/doctors/{self.doctor.id}/rates',
                             {'scope': 'opd_consultation', 'rateType': 'percentage', 'rateAmount': '150'},
                             format='json')
        self.assertEqual(r.status_code, 400)
        self.assertIs(r.data['ok'], False)

    def test_rate_supersede_and_deactivate(self):
        first = self.set_opd_rate('20').data['data']
        second = self.set_opd_rate('30').data['data']
        r = self.client.get(f'/api/doctors/{self.doctor.id}/rates')
        self.assertEqual([x['id'] for x in r.data['data']], [second['id']])

        r = self.client.post(f"/api/rates/{second['id']}/deactivate", {}, format='json')
        self.assertIs(r.data['data']['isActive'], False)
        r = self.client.get(f'/api/doctors/{self.doctor.id}/rates', {'includeInactive': 'true'})
        self.assertEqual({x['id'] for x in r.data['data']}, {first['id'], second['id']})

    def test_receptionist_cannot_read_earnings(self):
        client = APIClient()
        client.force_authenticate(user=self.receptionist)
        self.assertEqual(client.get('/api/earnings').status_code, 403)
        # but can register a visit
        r = client.post('/api/opd-visits', {'patientId': self.patient.id, 'doctorId': self.doctor.id}, format='json')
        self.assertEqual(r.status_code, 201)

    def test_anonymous_is_rejected(self):
        r = APIClient().get('/api/earnings')
        self.assertIn(r.status_code, (401, 403))

    def test_recalculate_requires_admin(self):
        self.assertEqual(self.client.post('/api/earnings/recalculate', {}, format='json').status_code, 403)
        self.client.force_authenticate(user=self.admin_user)
        r = self.client.post('/api/earnings/recalculate', {'sources': ['service', 'opd_visit']}, format='json')
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.data['data'], {'processed': 0, 'created': 0})

    def test_cancelled_visit_earns_nothing(self):
        self.set_opd_rate('20')
        with self.captureOnCommitCallbacks(execute=True):
            r = self.client.post('/api/opd-visits', {
                'patientId': self.patient.id, 'doctorId': self.doctor.id, 'consultationFee': '500',
                'status': 'cancelled',
            }, format='json')
        self.assertEqual(r.status_code, 201)
        self.assertFalse(DoctorEarning.objects.exists())
        r = self.client.get(f'/api/patients/{self.patient.id}/ledger')
        self.assertEqual(r.data['data']['totalCharges'], Decimal('0.00'))

    def test_recalculate_unknown_doctor_is_404(self):
        self.client.force_authenticate(user=self.admin_user)
        r = self.client.post('/api/earnings/recalculate', {'doctorId': 999999}, format='json')
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.data['error']['code'], 'not_found')

    def test_admission_lifecycle_and_ledger(self):
        r = self.client.post('/api/admissions', {
            'patientId': self.patient.id, 'doctorId': self.doctor.id, 'wardType': 'general',
            'admissionDate': '2024-05-01T10:00:00+05:30', 'initialDeposit': '500',
        }, format='json')
        self.assertEqual(r.status_code, 201)
        admission_id = r.data['data']['id']

        r = self.client.post('/api/patient-services', {
            'patientId': self.patient.id, 'serviceId': self.ward.id, 'serviceType': 'admission',
            'scheduledDate': '2024-05-01T10:30:00+05:30',
        }, format='json')
        self.assertEqual(r.status_code, 201)

        r = self.client.post(f'/api/admissions/{admission_id}/discharge',
                             {'dischargeDate': '2024-05-03T14:00:00+05:30'}, format='json')
        self.assertEqual(r.data['data']['status'], 'discharged')

        r = self.client.post(f'/api/patients/{self.patient.id}/payments',
                             {'amount': '1000', 'paymentMethod': 'upi'}, format='json')
        self.assertEqual(r.status_code, 201)
        r = self.client.post(f'/api/patients/{self.patient.id}/discounts',
                             {'amount': '200', 'discountType': 'insurance', 'reason': '<b>Policy</b> cover'},
                             format='json')
        self.assertEqual(r.status_code, 201)

        r = self.client.get(f'/api/patients/{self.patient.id}/ledger')
        self.assertEqual(r.status_code, 200)
        data = r.data['data']
        self.assertEqual(data['totalCharges'], Decimal('3000.00'))
        self.assertEqual(data['totalPayments'], Decimal('1500.00'))
        self.assertEqual(data['totalDiscounts'], Decimal('200.00'))
        self.assertEqual(data['balance'], Decimal('1300.00'))
        last = data['lines'][-1]['description']
        self.assertIn('Policy cover', last)
        self.assertNotIn('<b>', last)

    def test_per_date_service_is_costed_on_creation(self):
        r = self.client.post('/api/patient-services', {
            'patientId': self.patient.id, 'serviceId': self.ward.id, 'serviceType': 'ward',
            'scheduledDate': '2024-05-01T10:00:00+05:30', 'endDate': '2024-05-03T14:00:00+05:30',
        }, format='json')
        self.assertEqual(r.status_code, 201)
        self.assertEqual(r.data['data']['calculatedAmount'], Decimal('3000.00'))
        self.assertEqual(r.data['data']['billingQuantity'], 3)

    def test_pathology_order_total_is_sum_of_tests(self):
        with self.captureOnCommitCallbacks(execute=True):
            r = self.client.post('/api/pathology-orders', {
                'patientId': self.patient.id, 'doctorId': self.doctor.id,
                'tests': [
                    {'name': 'CBC', 'price': '150'},
                    {'name': 'LFT', 'price': '200', 'category': 'biochemistry'},
                    {'name': 'TSH', 'price': '100'},
                ],
            }, format='json')
        self.assertEqual(r.status_code, 201)
        self.assertEqual(r.data['data']['totalPrice'], Decimal('450.00'))
        # no pathology rate configured
        self.assertFalse(DoctorEarning.objects.exists())

    def test_recalculate_command(self):
        self.client.post(f'/api/doctors/{self.doctor.id}/rates',
                         {'scope': 'opd_consultation', 'rateType': 'amount', 'rateAmount': '60'}, format='json')
        OpdVisit.objects.create(visit_id='VIS-2024-050', patient=self.patient, doctor=self.doctor)
        out = StringIO()
        call_command('recalculate_earnings', '--all-sources', stdout=out)
        self.assertIn('created 1 earnings', out.getvalue())
        self.assertEqual(DoctorEarning.objects.get().earned_amount, Decimal('60.00'))


def test_login_returns_jwt_and_token(db):
    User.objects.create_user(username='u_jwt', password='P@ssw0rd1', role=User.ROLE_BILLING)
    client = APIClient()
    r = client.post(reverse('login_view'), {'username': 'u_jwt', 'password': 'P@ssw0rd1', 'role': 'super_user'},
                    format='json')
    assert r.status_code == 200
    assert r.data['token'] and r.data['jwt_access'] and r.data['jwt_refresh']
    assert r.data['role'] == User.ROLE_BILLING

    client.credentials(HTTP_AUTHORIZATION=f"Token {r.data['token']}")
    assert client.get('/api/earnings').status_code == 200

    jwt = APIClient()
    jwt.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['jwt_access']}")
    assert jwt.get('/api/earnings').status_code == 200


def test_login_rejects_bad_password(db):
    User.objects.create_user(username='u_bad', password='P@ssw0rd1')
    r = APIClient().post(reverse('login_view'), {'username': 'u_bad', 'password': 'nope'}, format='json')
    assert r.status_code == 400
    assert r.data['ok'] is False


def test_healthz(db):
    r = APIClient().get('/healthz')
    assert r.status_code == 200
    assert r.json()['ok'] is True
