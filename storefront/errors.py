# storefront/errors.py
"""Error taxonomy shared by the ingestion pipeline and the API layer.

Every error carries a static ``hint`` aimed at the operator reading the
failure response. Only the table store raises the backend-facing classes
(``SchemaMismatchError``, ``MissingTableError``, ``ConflictError``,
``NoRowsError``); everything above it catches them by type.
"""


class StorefrontError(Exception):
    hint = "Review server logs and verify DB schema/env vars, then retry with the same stock_no for idempotent import."
    status_code = 500

    def __init__(self, message="", hint=None):
        super().__init__(message)
        if hint:
            self.hint = hint


class ValidationError(StorefrontError):
    hint = (
        "Add all required fields in car_text: title, price, year, mileage, engine, trans, fuel, status, stock_no. "
        "Use numeric values for price, year and mileage; currency symbols are allowed."
    )
    status_code = 400


class AuthorizationError(StorefrontError):
    hint = "Provide a valid x-admin-token header or log in to obtain the admin_token cookie."
    status_code = 401

    def __init__(self, message="Unauthorized"):
        super().__init__(message)


class ServerMisconfigured(AuthorizationError):
    hint = "Set ADMIN_INGEST_TOKEN in server env, then restart the app."
    status_code = 500

    def __init__(self, message="Server is missing ADMIN_INGEST_TOKEN"):
        super().__init__(message)


class UpstreamError(StorefrontError):
    hint = "Verify the database is reachable and its schema matches the cars/car_images tables."


class TransientBackendError(UpstreamError):
    hint = "The database did not answer in time; retry shortly."


class SchemaMismatchError(UpstreamError):
    hint = "Verify schema: the table is missing a column the service writes; add it or let the service drop it."

    def __init__(self, message, column=None, table=None):
        super().__init__(message)
        self.column = column
        self.table = table


class MissingTableError(UpstreamError):
    hint = "Verify schema: create the missing table (see storefront.models) and retry."

    def __init__(self, message, table=None):
        super().__init__(message)
        self.table = table


class ConflictError(UpstreamError):
    hint = "Verify uniqueness of stock_no; fix conflicting data then retry."

    def __init__(self, message, column=None):
        super().__init__(message)
        self.column = column


class NoRowsError(UpstreamError):
    hint = "Verify the car exists in the cars table."
    status_code = 404


class UploadError(UpstreamError):
    hint = "Check storage bucket permissions and ensure STORAGE_BUCKET_CAR_IMAGES exists."


class PartialWriteError(UpstreamError):
    hint = (
        "The car row was saved but its images were not; verify car_images columns "
        "(car_id, image_url, sort_order) and bucket permissions, then resubmit with the same stock_no."
    )

    def __init__(self, message, car_id=None):
        super().__init__(message)
        self.car_id = car_id


_KEYWORD_HINTS = (
    ("unauthorized", AuthorizationError.hint),
    ("missing admin_ingest_token", ServerMisconfigured.hint),
    ("missing required field", ValidationError.hint),
    ("invalid numeric value", ValidationError.hint),
    ("failed to upload", UploadError.hint),
    ("car_images", PartialWriteError.hint),
    ("duplicate key", ConflictError.hint),
    ("could not find the", SchemaMismatchError.hint),
    ("does not exist", MissingTableError.hint),
)


def get_error_hint(error) -> str:
    """Static operator hint for an error, by category first, then by message keywords."""
    if isinstance(error, StorefrontError):
        return error.hint
    lower = str(error).lower()
    for keyword, hint in _KEYWORD_HINTS:
        if keyword in lower:
            return hint
    return StorefrontError.hint
