from django.urls import path
from staff.views import auth_views, staff_views


app_name = 'staff'


urlpatterns = [
    path('auth-login', auth_views.login, name='login'),
    path('auth-logout', auth_views.logout, name='logout'),
    path('auth-me', auth_views.me, name='me'),

    path('staff', staff_views.staff_collection, name='staff-list'),
    path('staff/<int:staff_id>', staff_views.get_staff, name='staff-detail'),
    path('staff/<int:staff_id>/status', staff_views.update_staff_status, name='staff-status'),
]
