"""Error taxonomy shared by the ingestion services.

Only validation and persistence failures ever reach a webhook caller; push
delivery problems are reported as `DeliveryOutcome` values inside the
notification service and never raised past it.
"""


class PayhookError(Exception):
    """Base class for errors surfaced through the HTTP layer."""

    status_code = 500


class ValidationError(PayhookError):
    """Inbound payload is missing required fields or cannot be parsed."""

    status_code = 400


class PersistenceError(PayhookError):
    """Read or write against the row store failed."""

    status_code = 500


class DuplicateExternalIdError(PersistenceError):
    """Insert hit the unique constraint on `transactions.external_id`."""

    def __init__(self, external_id: str) -> None:
        super().__init__(f"transaction with external_id={external_id} already exists")
        self.external_id = external_id


class AuthenticationError(PayhookError):
    """Caller did not present the expected shared secret or API key."""

    status_code = 401
