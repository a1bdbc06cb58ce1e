class ServiceError(Exception):
    """Base class for business failures raised by the service layer."""


class NotFoundError(ServiceError):
    pass


class ConflictError(ServiceError):
    pass


class ValidationError(ServiceError):
    pass
