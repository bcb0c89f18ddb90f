from django.views.decorators.csrf import csrf_exempt
from rest_framework.decorators import api_view

from staff.helpers.request import parse_json_body, get_bearer_token, get_client_ip
from staff.helpers.require_login import staff_required
from staff.helpers.response import APIResponse
from staff.services import AuthService, StaffService


@csrf_exempt
@api_view(["POST"])
def login(request):
    data, error = parse_json_body(request)
    if error:
        return error

    missing = [field for field in ('email', 'password') if not data.get(field)]
    if missing:
        return APIResponse.validation_error(
            errors={field: f'{field} is required' for field in missing},
            message=f'Missing required fields: {", ".join(missing)}'
        )

    result = AuthService.login(
        email=data['email'],
        password=data['password'],
        ip_address=get_client_ip(request),
        user_agent=request.headers.get('User-Agent', ''),
    )

    if not result['success']:
        return APIResponse.unauthorized(result['message'])

    return APIResponse.success(
        data={'token': result['token'], 'staff': StaffService.serialize(result['staff'])},
        message=result['message']
    )


@csrf_exempt
@api_view(["POST"])
@staff_required
def logout(request):
    result = AuthService.logout(get_bearer_token(request))
    return APIResponse.from_result(result)


@csrf_exempt
@api_view(["GET"])
@staff_required
def me(request):
    return APIResponse.success(data=StaffService.serialize(request.staff))
