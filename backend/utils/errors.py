"""
SmartParking - Error Types
Erreurs applicatives converties en réponses HTTP par main.py.
"""


class QueryError(Exception):
    """
    A database query failed while serving a request.

    Rendered as HTTP 500 with the underlying message under `field`
    ("message" for sessions and alerts, "error" for stats).
    """

    def __init__(self, message: str, field: str = "message"):
        super().__init__(message)
        self.message = message
        self.field = field
