class CrudFormError(Exception):
    """Base exception for crudform."""
    message: str # Type hint for the message attribute

    def __init__(self, message: str | None = None, *args):
        super().__init__(message, *args)
        # Use the provided message, else the first truthy arg, else the class name
        if message is not None:
            self.message = message
        elif args and args[0]:
            self.message = str(args[0])
        else:
            self.message = self.__class__.__name__


class CrudFormConfigError(CrudFormError):
    """Raised when configuration cannot be loaded or resolved."""


class ResponseResultError(CrudFormError):
    """Raised when the value of a result without a usable value is requested."""


class ApiResponseFailedError(ResponseResultError):
    """Raised when unwrapping a result whose envelope reports a failure."""

    def __init__(self, message: str | None, error_messages: list[str] | None = None):
        super().__init__(message or "The request failed")
        self.error_messages = list(error_messages or [])
