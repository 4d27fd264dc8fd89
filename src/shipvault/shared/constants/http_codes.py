"""HTTP Status Code Constants.

This module contains HTTP status code constants for clear and
type-safe handling of provider responses.
"""


class HTTPStatusCodes:
    """HTTP status code constants."""

    # 2xx Success
    OK = 200
    CREATED = 201
    NO_CONTENT = 204

    # 4xx Client Errors
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    REQUEST_TIMEOUT = 408
    UNPROCESSABLE_ENTITY = 422
    TOO_MANY_REQUESTS = 429

    # 5xx Server Errors
    INTERNAL_SERVER_ERROR = 500
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503
    GATEWAY_TIMEOUT = 504

    # Status code ranges
    @staticmethod
    def is_success(code: int) -> bool:
        """Check if status code indicates success (2xx)."""
        return 200 <= code < 300

    @staticmethod
    def is_client_error(code: int) -> bool:
        """Check if status code indicates client error (4xx)."""
        return 400 <= code < 500

    @staticmethod
    def is_server_error(code: int) -> bool:
        """Check if status code indicates server error (5xx)."""
        return 500 <= code < 600


class HTTPHeaders:
    """HTTP header names used against the provider."""

    # Some provider gateways only read one spelling; every request carries both
    API_KEY = "key"
    API_KEY_ALT = "Key"
    ACCEPT = "Accept"
    CONTENT_TYPE = "Content-Type"


class ContentTypes:
    """Content type values."""

    JSON = "application/json"
    FORM_URLENCODED = "application/x-www-form-urlencoded"
