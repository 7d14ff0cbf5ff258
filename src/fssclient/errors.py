"""Error definitions for the FSS client."""


def describe_operation(operation: str, *keys: str) -> str:
    """Render the trailing context suffix attached to errors.

    Args:
        operation: Short operation name (e.g. "download", "copy").
        keys: The object key(s) involved, in source -> destination order.

    Returns:
        A string such as ``--> [copy] [a.txt] to [b.txt]``.
    """
    rendered = " to ".join(f"[{key}]" for key in keys)
    return f"--> [{operation}] {rendered}".rstrip()


class FSSError(Exception):
    """Base class for every error raised by the FSS client.

    Attributes:
        message: Human-readable error description.
        context: Operation/key suffix, empty until :meth:`with_context` is called.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.context = ""

    def with_context(self, operation: str, *keys: str) -> "FSSError":
        """Attach the operation and key(s) to this error and return it."""
        self.context = describe_operation(operation, *keys)
        return self

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} {self.context}"
        return self.message


class ConfigurationError(FSSError):
    """The client configuration is malformed or matches no known schema."""


class ValidationError(FSSError):
    """A call argument was rejected locally, before any network I/O."""


class InvalidPayloadError(ValidationError):
    """The ``put`` payload is neither a byte buffer nor a readable byte stream."""

    def __init__(self, payload: object) -> None:
        super().__init__(
            "Upload data must be bytes or a readable byte stream, "
            f"got {type(payload).__name__}"
        )


class InvalidArgument(ValidationError):
    """An invalid argument was provided."""


# -- Service errors -----------------------------------------------------------


class ServiceError(FSSError):
    """The FSS service answered with a non-2xx status.

    Attributes:
        status: The HTTP status code of the response.
        code: The service error code (e.g. "NoSuchKey"), if the body carried one.
        description: The service error message, if the body carried one.
        fields: Every field decoded from the error document.
        handled: True when the error body was decoded into ``code``/``description``.
    """

    def __init__(
        self,
        message: str,
        status: int,
        code: str | None = None,
        description: str | None = None,
        fields: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.code = code
        self.description = description
        self.fields = fields or {}
        self.handled = code is not None

    @property
    def is_server_error(self) -> bool:
        return self.status >= 500


class HTTPClientError(ServiceError):
    """The service rejected the request (status < 500)."""


class HTTPServerError(ServiceError):
    """The service failed while handling the request (status >= 500)."""


def service_error(
    status: int,
    code: str | None = None,
    description: str | None = None,
    fields: dict[str, str] | None = None,
) -> ServiceError:
    """Build the client- or server-class error matching ``status``.

    Args:
        status: HTTP status code of the failed response.
        code: Decoded service error code, if any.
        description: Decoded service error message, if any.
        fields: All decoded error document fields.

    Returns:
        An :class:`HTTPClientError` for status < 500, else an :class:`HTTPServerError`.
    """
    if code is not None:
        message = description or code
    else:
        message = f"FSS service request failed [{status}]"
    error_cls = HTTPClientError if status < 500 else HTTPServerError
    return error_cls(
        message,
        status=status,
        code=code,
        description=description,
        fields=fields,
    )
