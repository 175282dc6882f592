"""Exceptions raised by service functions shared between REST and GraphQL"""


class ServiceError(Exception):
    """A domain rule was violated (duplicate slug, phone already taken, ...)"""

    def __init__(self, detail, status_code=400):
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)
