from django.http import JsonResponse


class APIResponse:

    @staticmethod
    def success(data=None, message='Success', status=200):
        payload = {'success': True, 'message': message}
        if data is not None:
            payload['data'] = data
        return JsonResponse(payload, status=status)

    @staticmethod
    def created(data=None, message='Created'):
        return APIResponse.success(data=data, message=message, status=201)

    @staticmethod
    def error(message='Error', error_code='ERROR', status=400, details=None):
        payload = {'success': False, 'message': message, 'error_code': error_code}
        if details:
            payload['details'] = details
        return JsonResponse(payload, status=status)

    @staticmethod
    def validation_error(errors=None, message='Validation failed'):
        return APIResponse.error(message, 'VALIDATION_ERROR', 400, errors)

    @staticmethod
    def unauthorized(message='Authentication required'):
        return APIResponse.error(message, 'UNAUTHORIZED', 401)

    @staticmethod
    def not_found(message='Not found'):
        return APIResponse.error(message, 'NOT_FOUND', 404)

    @staticmethod
    def from_result(result, status=200):
        """Render a service result dict carrying 'success' and 'error_code'."""
        if result.get('success'):
            data = {k: v for k, v in result.items() if k not in ('success', 'message')}
            return APIResponse.success(data=data, message=result.get('message', 'Success'), status=status)

        error_code = result.get('error_code', 'ERROR')
        http_status = {'NOT_FOUND': 404, 'UNAUTHORIZED': 401, 'DUPLICATE_EMAIL': 409}.get(error_code, 400)
        return APIResponse.error(result.get('message', 'Error'), error_code, http_status)
