"""Domain errors surfaced to API callers."""


class CrmError(Exception):
    """Base class for CRM business-rule failures."""


class UnknownStageError(CrmError, ValueError):
    """A lead stage outside the canonical pipeline vocabulary."""

    def __init__(self, stage):
        self.stage = stage
        super().__init__(f"Unknown pipeline stage: {stage!r}")


class NoPaidInvoicesError(CrmError):
    """No paid invoices exist to derive a client's MRR from."""

    def __init__(self, client_id=None):
        self.client_id = client_id
        super().__init__("No paid invoices found. Make sure this client has paid invoices.")
