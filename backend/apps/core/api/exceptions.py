import logging

from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.costing.exceptions import CostingError, InvalidBatchError, MissingReferenceError, UnrecognizedUnitError

logger = logging.getLogger(__name__)

COSTING_ERROR_CODES = (
    (UnrecognizedUnitError, "unrecognized_unit"),
    (MissingReferenceError, "missing_reference"),
    (InvalidBatchError, "invalid_batch"),
)


def _costing_error_response(exc: CostingError) -> Response:
    code = "costing_error"
    for error_class, error_code in COSTING_ERROR_CODES:
        if isinstance(exc, error_class):
            code = error_code
            break
    logger.info("Costing request rejected (%s): %s", code, exc)
    return Response(
        {"code": code, "detail": str(exc), "field_errors": {}},
        status=status.HTTP_422_UNPROCESSABLE_ENTITY,
    )


def normalize_field_errors(errors):
    """Render index keyed error maps from nested list fields as lists.

    Recent DRF releases report list item errors as ``{0: {...}}`` instead of a
    list padded with empty entries; clients always get the list form.
    """
    if isinstance(errors, dict):
        normalized = {key: normalize_field_errors(value) for key, value in errors.items()}
        if normalized and all(str(key).isdigit() for key in normalized):
            indexed = {int(key): value for key, value in normalized.items()}
            return [indexed.get(position, {}) for position in range(max(indexed) + 1)]
        return normalized
    if isinstance(errors, list):
        return [normalize_field_errors(item) for item in errors]
    return errors


def batchcost_exception_handler(exc, context):
    if isinstance(exc, CostingError):
        return _costing_error_response(exc)

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, ValidationError):
        response.data = {
            "code": "validation_error",
            "detail": "Request validation failed.",
            "field_errors": normalize_field_errors(response.data),
        }
        return response

    detail = response.data.get("detail") if isinstance(response.data, dict) else response.data
    code = getattr(exc, "default_code", "api_error")

    if response.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        code = "internal_error"
    elif response.status_code == status.HTTP_401_UNAUTHORIZED:
        code = "authentication_failed"
    elif response.status_code == status.HTTP_403_FORBIDDEN:
        code = "permission_denied"
    elif response.status_code == status.HTTP_404_NOT_FOUND:
        code = "not_found"

    response.data = {
        "code": code,
        "detail": str(detail),
        "field_errors": {},
    }
    return response
