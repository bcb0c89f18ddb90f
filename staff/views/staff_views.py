from django.views.decorators.csrf import csrf_exempt
from rest_framework.decorators import api_view

from staff.helpers.request import parse_json_body
from staff.helpers.require_login import staff_required, admin_required
from staff.helpers.response import APIResponse
from staff.services import StaffService


@csrf_exempt
@api_view(["GET", "POST"])
@staff_required
def staff_collection(request):
    if request.method == "POST":
        return _create_staff(request)

    result = StaffService.get_all_staff(
        page=int(request.GET.get('page', 1)),
        per_page=int(request.GET.get('per_page', 20)),
        search=request.GET.get('search'),
        role=request.GET.get('role'),
        status=request.GET.get('status'),
    )
    return APIResponse.from_result(result)


@admin_required
def _create_staff(request):
    data, error = parse_json_body(request)
    if error:
        return error

    required = ['first_name', 'last_name', 'email', 'password']
    missing = [field for field in required if not data.get(field)]
    if missing:
        return APIResponse.validation_error(
            errors={field: f'{field} is required' for field in missing},
            message=f'Missing required fields: {", ".join(missing)}'
        )

    result = StaffService.create_staff(
        first_name=data['first_name'],
        last_name=data['last_name'],
        email=data['email'],
        password=data['password'],
        role=data.get('role', 'TECHNICIAN'),
        status=data.get('status', 'ACTIVE'),
    )
    return APIResponse.from_result(result, status=201)


@csrf_exempt
@api_view(["GET"])
@staff_required
def get_staff(request, staff_id):
    result = StaffService.get_staff_by_id(staff_id)
    return APIResponse.from_result(result)


@csrf_exempt
@api_view(["POST"])
@admin_required
def update_staff_status(request, staff_id):
    data, error = parse_json_body(request)
    if error:
        return error

    if not data.get('status'):
        return APIResponse.validation_error(errors={'status': 'status is required'})

    result = StaffService.set_status(staff_id, data['status'])
    return APIResponse.from_result(result)
