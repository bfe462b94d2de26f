from __future__ import annotations


class ServiceError(RuntimeError):
  status_code = 400

  def __init__(self, message: str) -> None:
    super().__init__(message)
    self.message = message


class NotFoundError(ServiceError):
  status_code = 404


class ConflictError(ServiceError):
  status_code = 409


class PermissionDeniedError(ServiceError):
  status_code = 403


class ValidationFailedError(ServiceError):
  status_code = 400


class UnsupportedMediaTypeError(ServiceError):
  status_code = 415


class PayloadTooLargeError(ServiceError):
  status_code = 413
