from django import forms
from django.contrib import admin
from django.contrib.auth.hashers import make_password
from django.utils.translation import gettext_lazy as _
from unfold.admin import ModelAdmin
from unfold.contrib.filters.admin import RangeDateTimeFilter
from unfold.decorators import display

from .models import Staff, StaffSession


class StaffAdminForm(forms.ModelForm):
    """Staff form that hashes the password on save"""
    password = forms.CharField(
        label=_("Password"),
        widget=forms.PasswordInput(attrs={'placeholder': 'Enter password'}),
        required=False,
    )

    class Meta:
        model = Staff
        fields = '__all__'

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if self.instance and self.instance.pk:
            self.fields['password'].help_text = _(
                "Leave blank to keep the current password. Enter a new password to change it."
            )
        else:
            self.fields['password'].required = True

    def clean_password(self):
        password = self.cleaned_data.get('password')

        if self.instance.pk and not password:
            return None

        if password and len(password) < 6:
            raise forms.ValidationError(_("Password must be at least 6 characters long."))

        return password

    def save(self, commit=True):
        staff = super().save(commit=False)

        password = self.cleaned_data.get('password')
        if password:
            staff.password = make_password(password)
        elif staff.pk:
            staff.password = Staff.objects.values_list('password', flat=True).get(pk=staff.pk)

        if commit:
            staff.save()
        return staff


@admin.register(Staff)
class StaffAdmin(ModelAdmin):
    form = StaffAdminForm
    list_display = ['id', 'full_name', 'email', 'role_badge', 'status_badge', 'last_login_at']
    list_filter = [
        'role',
        'status',
        ('last_login_at', RangeDateTimeFilter),
    ]
    search_fields = ['first_name', 'last_name', 'email']
    readonly_fields = ['last_login_at']
    list_filter_submit = True

    fieldsets = (
        (_('Personal Information'), {
            'fields': ('first_name', 'last_name', 'email'),
        }),
        (_('Access & Security'), {
            'fields': ('role', 'status', 'password'),
        }),
        (_('Activity Tracking'), {
            'fields': ('last_login_at',),
        }),
    )

    @display(description=_("Name"), ordering='first_name')
    def full_name(self, obj):
        return obj.full_name

    @display(
        description=_("Role"),
        label={
            'ADMIN': 'danger',
            'MANAGER': 'warning',
            'TECHNICIAN': 'info',
            'CASHIER': 'success',
        },
    )
    def role_badge(self, obj):
        return obj.role

    @display(description=_("Status"), label={'ACTIVE': 'success', 'SUSPENDED': 'danger'})
    def status_badge(self, obj):
        return obj.status


@admin.register(StaffSession)
class StaffSessionAdmin(ModelAdmin):
    list_display = ['id', 'staff', 'ip_address', 'user_agent', 'last_activity']
    search_fields = ['staff__first_name', 'staff__last_name', 'staff__email', 'ip_address']
    readonly_fields = ['staff', 'token_key', 'ip_address', 'user_agent', 'last_activity', 'created_at']

    def has_add_permission(self, request):
        return False
