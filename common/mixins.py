class SuccessEnvelopeMixin:
    """
    Wrap successful viewset responses as {"success": true, "data": ...}.
    Errors are shaped by common.exceptions.api_exception_handler.
    """

    def finalize_response(self, request, response, *args, **kwargs):
        if 200 <= response.status_code < 300 and response.data is not None:
            already_wrapped = isinstance(response.data, dict) and 'success' in response.data
            if not already_wrapped:
                response.data = {'success': True, 'data': response.data}
        return super().finalize_response(request, response, *args, **kwargs)
