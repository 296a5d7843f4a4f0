# shopfront/domain/errors.py
from typing import Optional


class GatewayError(Exception):
    """
    Raised by a table gateway when a storage round trip fails
    (network, serialization, permission, constraint violation).
    Stores catch it at their public boundary and degrade to a safe default.
    """

    def __init__(self, table: str, operation: str, cause: Optional[BaseException] = None):
        self.table = table
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"{operation} on '{table}' failed{detail}")
