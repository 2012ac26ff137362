"""
Database models for the HMSync billing backend.

These models capture the billable sources of a hospital (service
instances, OPD visits, pathology orders and admissions), the doctor
commission configuration and the records derived from it (earnings and
doctor payments), and the money a patient pays in (payments and
discounts).  Money is stored as ``Decimal`` with two decimal places.
"""
from __future__ import annotations

from decimal import Decimal

from django.contrib.auth.models import AbstractUser
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone


MONEY = dict(max_digits=12, decimal_places=2)


class User(AbstractUser):
    """Custom user model carrying a single primary role."""
    ROLE_SUPER = 'super_user'
    ROLE_ADMIN = 'admin'
    ROLE_DOCTOR = 'doctor'
    ROLE_RECEPTIONIST = 'receptionist'
    ROLE_BILLING = 'billing_staff'
    ROLE_CHOICES = [
        (ROLE_SUPER, 'Super user'),
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_DOCTOR, 'Doctor'),
        (ROLE_RECEPTIONIST, 'Receptionist'),
        (ROLE_BILLING, 'Billing staff'),
    ]
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_RECEPTIONIST)

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Doctor(models.Model):
    user = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='doctor_profiles')
    name = models.CharField(max_length=255)
    specialization = models.CharField(max_length=255, blank=True)
    qualification = models.CharField(max_length=255, blank=True)
    # Default OPD fee, used when a visit carries no fee of its own
    consultation_fee = models.DecimalField(**MONEY, default=Decimal('0'))
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.name


class Patient(models.Model):
    GENDER_CHOICES = [('male', 'Male'), ('female', 'Female'), ('other', 'Other')]

    patient_id = models.CharField(max_length=32, unique=True, help_text="PT-2025-001 format")
    name = models.CharField(max_length=255)
    age = models.PositiveIntegerField(null=True, blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    phone = models.CharField(max_length=32, blank=True)
    address = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.patient_id})"


class Service(models.Model):
    """An entry of the billable service catalog."""
    BILLING_PER_INSTANCE = 'per_instance'
    BILLING_PER_HOUR = 'per_hour'
    BILLING_PER_24_HOURS = 'per_24_hours'
    BILLING_PER_DATE = 'per_date'
    BILLING_TYPE_CHOICES = [
        (BILLING_PER_INSTANCE, 'Per instance'),
        (BILLING_PER_HOUR, 'Per hour'),
        (BILLING_PER_24_HOURS, 'Per 24 hours'),
        (BILLING_PER_DATE, 'Per calendar date'),
    ]

    name = models.CharField(max_length=255)
    category = models.CharField(max_length=64, db_index=True)
    price = models.DecimalField(**MONEY)
    description = models.TextField(blank=True)
    billing_type = models.CharField(max_length=20, choices=BILLING_TYPE_CHOICES, default=BILLING_PER_INSTANCE)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.name} [{self.category}]"


class PatientService(models.Model):
    """One scheduled or completed service for a patient.

    ``calculated_amount`` is filled when the billed amount differs from
    ``price`` because of quantity based billing.  Rows whose
    ``service_type`` is ``admission`` are priced per day of stay.
    """
    STATUS_SCHEDULED = 'scheduled'
    STATUS_IN_PROGRESS = 'in-progress'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_SCHEDULED, 'Scheduled'),
        (STATUS_IN_PROGRESS, 'In progress'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]
    TYPE_ADMISSION = 'admission'

    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='services')
    doctor = models.ForeignKey(Doctor, null=True, blank=True, on_delete=models.SET_NULL, related_name='patient_services')
    service = models.ForeignKey(Service, null=True, blank=True, on_delete=models.SET_NULL, related_name='instances')
    service_type = models.CharField(max_length=32, db_index=True)
    service_name = models.CharField(max_length=255)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_SCHEDULED)
    scheduled_date = models.DateTimeField(default=timezone.now)
    completed_date = models.DateTimeField(null=True, blank=True)
    price = models.DecimalField(**MONEY, default=Decimal('0'))
    billing_type = models.CharField(max_length=20, choices=Service.BILLING_TYPE_CHOICES, default=Service.BILLING_PER_INSTANCE)
    billing_quantity = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('1'))
    calculated_amount = models.DecimalField(**MONEY, null=True, blank=True)
    receipt_number = models.CharField(max_length=32, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['patient', 'scheduled_date'], name='patsvc_patient_date_idx'),
            models.Index(fields=['doctor', 'scheduled_date'], name='patsvc_doctor_date_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.service_name} for {self.patient_id}"


class OpdVisit(models.Model):
    STATUS_SCHEDULED = 'scheduled'
    STATUS_PAID = 'paid'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_SCHEDULED, 'Scheduled'),
        (STATUS_PAID, 'Paid'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    visit_id = models.CharField(max_length=32, unique=True, help_text="VIS-2025-001 format")
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='opd_visits')
    doctor = models.ForeignKey(Doctor, on_delete=models.PROTECT, related_name='opd_visits')
    visit_date = models.DateTimeField(default=timezone.now)
    # Zero or null means the doctor's default fee applies
    consultation_fee = models.DecimalField(**MONEY, null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_SCHEDULED)
    symptoms = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.visit_id

    @property
    def effective_fee(self) -> Decimal:
        if self.consultation_fee:
            return self.consultation_fee
        return self.doctor.consultation_fee or Decimal('0')


class PathologyOrder(models.Model):
    """A batch of tests billed together at the order level."""
    STATUS_ORDERED = 'ordered'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_ORDERED, 'Ordered'),
        ('collected', 'Collected'),
        ('processing', 'Processing'),
        (STATUS_COMPLETED, 'Completed'),
        ('paid', 'Paid'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    order_id = models.CharField(max_length=32, unique=True, help_text="LAB-2025-001 format")
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='pathology_orders')
    doctor = models.ForeignKey(Doctor, null=True, blank=True, on_delete=models.SET_NULL, related_name='pathology_orders')
    ordered_date = models.DateTimeField(default=timezone.now)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ORDERED)
    total_price = models.DecimalField(**MONEY, default=Decimal('0'))
    remarks = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.order_id


class PathologyTest(models.Model):
    order = models.ForeignKey(PathologyOrder, on_delete=models.CASCADE, related_name='tests')
    service = models.ForeignKey(Service, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    test_name = models.CharField(max_length=255)
    test_category = models.CharField(max_length=128, blank=True)
    price = models.DecimalField(**MONEY)

    def __str__(self) -> str:
        return f"{self.test_name} ({self.order.order_id})"


class Admission(models.Model):
    STATUS_ADMITTED = 'admitted'
    STATUS_DISCHARGED = 'discharged'
    STATUS_CHOICES = [(STATUS_ADMITTED, 'Admitted'), (STATUS_DISCHARGED, 'Discharged')]

    admission_id = models.CharField(max_length=32, unique=True, help_text="ADM-2025-001 format")
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='admissions')
    doctor = models.ForeignKey(Doctor, null=True, blank=True, on_delete=models.SET_NULL, related_name='admissions')
    ward_type = models.CharField(max_length=64, blank=True)
    room_number = models.CharField(max_length=32, blank=True)
    admission_date = models.DateTimeField(default=timezone.now)
    discharge_date = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ADMITTED, db_index=True)
    reason = models.TextField(blank=True)
    daily_cost = models.DecimalField(**MONEY, default=Decimal('0'))
    initial_deposit = models.DecimalField(**MONEY, default=Decimal('0'))
    additional_payments = models.DecimalField(**MONEY, default=Decimal('0'))
    last_payment_date = models.DateTimeField(null=True, blank=True)
    # Legacy running discount kept on the admission row
    total_discount = models.DecimalField(**MONEY, default=Decimal('0'))
    last_discount_date = models.DateTimeField(null=True, blank=True)
    last_discount_reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.admission_id


class DoctorServiceRate(models.Model):
    """Commission configuration for one doctor and one service reference.

    ``scope`` is the explicit service reference: a concrete catalog
    service (matched by id, then by name and category), every OPD
    consultation of the doctor, or every pathology order of the doctor.
    Rules are superseded by deactivation, never deleted, because
    earnings keep their own copy of the rate.
    """
    SCOPE_SERVICE = 'service'
    SCOPE_OPD = 'opd_consultation'
    SCOPE_PATHOLOGY = 'pathology_all'
    SCOPE_CHOICES = [
        (SCOPE_SERVICE, 'Concrete service'),
        (SCOPE_OPD, 'OPD consultation'),
        (SCOPE_PATHOLOGY, 'All pathology orders'),
    ]

    CATEGORY_CHOICES = [
        ('opd', 'OPD'),
        ('diagnostics', 'Diagnostics'),
        ('lab_tests', 'Lab tests'),
        ('admission', 'Admission'),
        ('pathology', 'Pathology'),
    ]

    RATE_AMOUNT = 'amount'
    RATE_PERCENTAGE = 'percentage'
    RATE_FIXED_DAILY = 'fixed_daily'
    RATE_PER_INSTANCE = 'per_instance'
    RATE_TYPE_CHOICES = [
        (RATE_AMOUNT, 'Flat amount'),
        (RATE_PERCENTAGE, 'Percentage'),
        (RATE_FIXED_DAILY, 'Fixed daily'),
        (RATE_PER_INSTANCE, 'Per instance'),
    ]

    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name='service_rates')
    scope = models.CharField(max_length=20, choices=SCOPE_CHOICES, default=SCOPE_SERVICE)
    service = models.ForeignKey(Service, null=True, blank=True, on_delete=models.PROTECT, related_name='doctor_rates')
    service_name = models.CharField(max_length=255)
    service_category = models.CharField(max_length=20, choices=CATEGORY_CHOICES)
    rate_type = models.CharField(max_length=20, choices=RATE_TYPE_CHOICES, default=RATE_AMOUNT)
    rate_amount = models.DecimalField(**MONEY)
    is_active = models.BooleanField(default=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['doctor', 'is_active', 'service'], name='rate_doctor_service_idx'),
            models.Index(fields=['doctor', 'is_active', 'service_category'], name='rate_doctor_category_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.doctor_id}:{self.service_name} {self.rate_type}={self.rate_amount}"


class DoctorEarning(models.Model):
    SOURCE_SERVICE = 'service'
    SOURCE_OPD = 'opd_visit'
    SOURCE_PATHOLOGY = 'pathology_order'
    SOURCE_CHOICES = [
        (SOURCE_SERVICE, 'Service instance'),
        (SOURCE_OPD, 'OPD visit'),
        (SOURCE_PATHOLOGY, 'Pathology order'),
    ]

    STATUS_PENDING = 'pending'
    STATUS_PAID = 'paid'
    STATUS_CHOICES = [(STATUS_PENDING, 'Pending'), (STATUS_PAID, 'Paid')]

    earning_id = models.CharField(max_length=32, unique=True, help_text="EARN-2025-001 format")
    doctor = models.ForeignKey(Doctor, on_delete=models.PROTECT, related_name='earnings')
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='doctor_earnings')
    source_type = models.CharField(max_length=20, choices=SOURCE_CHOICES)
    source_id = models.PositiveBigIntegerField()
    patient_service = models.ForeignKey(PatientService, null=True, blank=True, on_delete=models.SET_NULL, related_name='earnings')
    service = models.ForeignKey(Service, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    service_name = models.CharField(max_length=255)
    service_category = models.CharField(max_length=64)
    service_date = models.DateTimeField()
    # Copied from the rule at calculation time
    rate_type = models.CharField(max_length=20, choices=DoctorServiceRate.RATE_TYPE_CHOICES)
    rate_amount = models.DecimalField(**MONEY)
    service_price = models.DecimalField(**MONEY)
    earned_amount = models.DecimalField(**MONEY)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['source_type', 'source_id'], name='uniq_earning_per_source_event'),
        ]
        indexes = [
            models.Index(fields=['doctor', 'status', 'service_date'], name='earning_doctor_status_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.earning_id} {self.earned_amount} ({self.status})"


class DoctorPayment(models.Model):
    METHOD_CHOICES = [('cash', 'Cash'), ('bank_transfer', 'Bank transfer'), ('cheque', 'Cheque')]

    payment_id = models.CharField(max_length=32, unique=True, help_text="DPAY-2025-001 format")
    doctor = models.ForeignKey(Doctor, on_delete=models.PROTECT, related_name='payments')
    payment_date = models.DateTimeField(default=timezone.now)
    total_amount = models.DecimalField(**MONEY)
    payment_method = models.CharField(max_length=20, choices=METHOD_CHOICES, default='cash')
    earnings = models.ManyToManyField(DoctorEarning, related_name='payments')
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    description = models.CharField(max_length=255, blank=True)
    processed_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.payment_id} {self.total_amount}"


class PatientPayment(models.Model):
    METHOD_CHOICES = [('cash', 'Cash'), ('card', 'Card'), ('upi', 'UPI'), ('bank_transfer', 'Bank transfer')]

    payment_id = models.CharField(max_length=32, unique=True, help_text="PAY-2025-001 format")
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='payments')
    amount = models.DecimalField(**MONEY)
    payment_method = models.CharField(max_length=20, choices=METHOD_CHOICES, default='cash')
    payment_date = models.DateTimeField(default=timezone.now)
    reason = models.CharField(max_length=255, blank=True)
    receipt_number = models.CharField(max_length=32, blank=True)
    processed_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.payment_id} {self.amount}"


class PatientDiscount(models.Model):
    TYPE_CHOICES = [
        ('manual', 'Manual'),
        ('insurance', 'Insurance'),
        ('senior_citizen', 'Senior citizen'),
        ('employee', 'Employee'),
    ]

    discount_id = models.CharField(max_length=32, unique=True, help_text="DISC-2025-001 format")
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='discounts')
    amount = models.DecimalField(**MONEY)
    discount_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='manual')
    reason = models.CharField(max_length=255)
    discount_date = models.DateTimeField(default=timezone.now)
    approved_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.discount_id} {self.amount}"


class Activity(models.Model):
    """Activity feed entry recorded after state-changing operations."""
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    activity_type = models.CharField(max_length=64)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    entity_type = models.CharField(max_length=64, blank=True, null=True)
    entity_id = models.CharField(max_length=64, blank=True, null=True)
    metadata = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['activity_type', 'created_at'], name='activity_type_created_idx'),
            models.Index(fields=['entity_type', 'entity_id', 'created_at'], name='activity_entity_idx'),
        ]

    def __str__(self):
        return f"{self.activity_type}:{self.user_id}@{self.created_at:%F %T}"


class SequenceCounter(models.Model):
    """Named counter behind the human readable ``PREFIX-YEAR-NNN`` ids."""
    name = models.CharField(max_length=64, unique=True)
    value = models.PositiveIntegerField(default=0)

    def __str__(self):
        return f"{self.name}={self.value}"
