import uuid

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIdMiddleware:
    """Tags every request with an id, echoed back in the response and in CMS logs."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        rid = (request.headers.get(REQUEST_ID_HEADER) or "").strip()[:64] or uuid.uuid4().hex
        request.request_id = rid
        response = self.get_response(request)
        response[REQUEST_ID_HEADER] = rid
        return response
