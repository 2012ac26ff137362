from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from billing.models import Doctor, Patient, Service, User


@pytest.fixture
def doctor(db):
    return Doctor.objects.create(name='Dr. Mehta', specialization='Cardiology', consultation_fee=Decimal('500'))


@pytest.fixture
def patient(db):
    return Patient.objects.create(patient_id='PT-2024-001', name='Ravi Kumar', age=42, gender='male')


@pytest.fixture
def xray(db):
    return Service.objects.create(name='X-Ray Chest', category='diagnostics', price=Decimal('500'))


@pytest.fixture
def billing_user(db):
    return User.objects.create_user(username='billing1', password='P@ssw0rd1', role=User.ROLE_BILLING)


@pytest.fixture
def api(billing_user):
    client = APIClient()
    client.force_authenticate(user=billing_user)
    return client
