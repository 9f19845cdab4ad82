"""Exceptions raised by the merge engine."""


class XliffMergeError(ValueError):
    """Base class for documents the merge cannot process."""


class UnsupportedVersionError(XliffMergeError):
    """The document root carries no XLIFF version this package understands."""


class MissingContainerError(XliffMergeError):
    """The document has no element that could hold translation units."""


class MalformedUnitError(XliffMergeError):
    """A unit lacks a structural element every unit must have."""

    def __init__(self, unit_id, reason: str):
        self.unit_id = unit_id
        self.reason = reason
        super().__init__(f"Malformed unit '{unit_id}': {reason}")
