class CostingError(Exception):
    """Base class for errors raised by the costing engine."""


class UnrecognizedUnitError(CostingError, ValueError):
    def __init__(self, unit):
        self.unit = unit
        super().__init__(f"Unrecognized unit: {unit!r}.")


class MissingReferenceError(CostingError, LookupError):
    def __init__(self, kind: str, reference_id):
        self.kind = kind
        self.reference_id = reference_id
        super().__init__(f"{kind} {reference_id} not found.")


class InvalidBatchError(CostingError, ValueError):
    pass
