"""
API exception handling.

Every error leaving the API uses the same envelope: {"errors": ...}.
PII is scrubbed from validation payloads before they are logged.
"""
from rest_framework.views import exception_handler

from checkout_backend.utils.pii import get_pii_safe_logger

logger = get_pii_safe_logger(__name__)


def api_exception_handler(exc, context):
    """
    Wrap DRF's default error payload in the {"errors": ...} envelope.
    """
    response = exception_handler(exc, context)

    if response is None:
        return response

    data = response.data
    if isinstance(data, dict) and set(data.keys()) == {"detail"}:
        data = data["detail"]

    request = context.get("request")
    if request is not None:
        logger.warning(
            f"API error: {exc.__class__.__name__}",
            extra={
                "status_code": response.status_code,
                "path": request.path,
                "method": request.method,
                "payload": data if isinstance(data, dict) else None,
            },
        )

    response.data = {"errors": data}
    return response
