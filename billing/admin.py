"""
Django admin registrations for the billing models.

Rates and earnings are listed with their status filters so staff can
check what the calculator produced.  Doctor payments are read only once
created.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import (
    Activity,
    Admission,
    Doctor,
    DoctorEarning,
    DoctorPayment,
    DoctorServiceRate,
    OpdVisit,
    PathologyOrder,
    PathologyTest,
    Patient,
    PatientDiscount,
    PatientPayment,
    PatientService,
    Service,
    User,
)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('username', 'role', 'is_staff', 'is_superuser')
    list_filter = ('role', 'is_staff')
    fieldsets = BaseUserAdmin.fieldsets + (('Role', {'fields': ('role',)}),)


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'specialization', 'consultation_fee', 'is_active')
    search_fields = ('name', 'specialization')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('patient_id', 'name', 'age', 'gender', 'phone')
    search_fields = ('patient_id', 'name', 'phone')


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ('name', 'category', 'price', 'billing_type', 'is_active')
    list_filter = ('category', 'billing_type', 'is_active')
    search_fields = ('name',)


@admin.register(PatientService)
class PatientServiceAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'service_name', 'service_type', 'doctor', 'status', 'price', 'calculated_amount')
    list_filter = ('service_type', 'status')
    search_fields = ('service_name', 'patient__name', 'receipt_number')


@admin.register(OpdVisit)
class OpdVisitAdmin(admin.ModelAdmin):
    list_display = ('visit_id', 'patient', 'doctor', 'visit_date', 'consultation_fee', 'status')
    list_filter = ('status',)
    search_fields = ('visit_id', 'patient__name')


class PathologyTestInline(admin.TabularInline):
    model = PathologyTest
    extra = 0


@admin.register(PathologyOrder)
class PathologyOrderAdmin(admin.ModelAdmin):
    list_display = ('order_id', 'patient', 'doctor', 'ordered_date', 'total_price', 'status')
    list_filter = ('status',)
    inlines = [PathologyTestInline]


@admin.register(Admission)
class AdmissionAdmin(admin.ModelAdmin):
    list_display = ('admission_id', 'patient', 'doctor', 'admission_date', 'discharge_date', 'status')
    list_filter = ('status', 'ward_type')
    search_fields = ('admission_id', 'patient__name')


@admin.register(DoctorServiceRate)
class DoctorServiceRateAdmin(admin.ModelAdmin):
    list_display = ('doctor', 'scope', 'service_name', 'service_category', 'rate_type', 'rate_amount', 'is_active')
    list_filter = ('scope', 'service_category', 'rate_type', 'is_active')
    search_fields = ('doctor__name', 'service_name')


@admin.register(DoctorEarning)
class DoctorEarningAdmin(admin.ModelAdmin):
    list_display = ('earning_id', 'doctor', 'patient', 'source_type', 'service_name', 'earned_amount', 'status')
    list_filter = ('status', 'source_type')
    search_fields = ('earning_id', 'doctor__name', 'patient__name')


@admin.register(DoctorPayment)
class DoctorPaymentAdmin(admin.ModelAdmin):
    list_display = ('payment_id', 'doctor', 'payment_date', 'total_amount', 'payment_method')
    readonly_fields = [f.name for f in DoctorPayment._meta.fields] + ['earnings']

    def has_change_permission(self, request, obj=None):
        return obj is None


@admin.register(PatientPayment)
class PatientPaymentAdmin(admin.ModelAdmin):
    list_display = ('payment_id', 'patient', 'amount', 'payment_method', 'payment_date')
    search_fields = ('payment_id', 'patient__name', 'receipt_number')


@admin.register(PatientDiscount)
class PatientDiscountAdmin(admin.ModelAdmin):
    list_display = ('discount_id', 'patient', 'amount', 'discount_type', 'discount_date')
    list_filter = ('discount_type',)


@admin.register(Activity)
class ActivityAdmin(admin.ModelAdmin):
    list_display = ('activity_type', 'title', 'user', 'entity_type', 'entity_id', 'created_at')
    list_filter = ('activity_type',)
    search_fields = ('title', 'entity_id')
