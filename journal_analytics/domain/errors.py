"""Domain exceptions."""


class ContractViolationError(ValueError):
    """Input reached the core in a shape the caller promised to prevent.

    Numeric edge cases never raise; this is reserved for malformed input,
    such as a transaction attached to a trade it does not belong to.
    """

    def __init__(self, message: str, trade_id: str | None = None):
        self.trade_id = trade_id
        super().__init__(message + (f" (trade: {trade_id})" if trade_id else ""))
