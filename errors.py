"""
Domain errors raised by the service layer and mapped to HTTP responses in main.py.
"""


class StoreError(Exception):
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class InvalidInput(StoreError):
    status_code = 400


class NotFound(StoreError):
    status_code = 404


class InvalidTransition(StoreError):
    status_code = 409


class StorageUnavailable(StoreError):
    status_code = 500
