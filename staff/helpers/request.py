import json

from .response import APIResponse


def parse_json_body(request):
    """Return (data, error_response). Exactly one of the two is None."""
    body = request.body
    if not body:
        return {}, None

    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None, APIResponse.error('Invalid JSON body', 'INVALID_JSON', 400)

    if not isinstance(data, dict):
        return None, APIResponse.error('JSON body must be an object', 'INVALID_JSON', 400)

    return data, None


def get_bearer_token(request):
    auth_header = request.headers.get('Authorization', '')
    if not auth_header.startswith('Bearer '):
        return None
    return auth_header[7:].strip() or None


def get_client_ip(request):
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR', '')
