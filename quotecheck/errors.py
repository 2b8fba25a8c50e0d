class InvalidLineItem(ValueError):
    """
    A drafted line item carries figures the engine refuses to trust.

    Raised instead of silently correcting financial data. Aborts processing of
    the quote the item belongs to and nothing else.
    """

    def __init__(self, label: str, field: str, reason: str):
        self.label = label
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid line item '{label}': {field} {reason}")

    def to_dict(self) -> dict:
        return {"label": self.label, "field": self.field, "reason": self.reason}
