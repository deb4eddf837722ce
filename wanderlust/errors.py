"""Exceptions raised by Wanderlust collaborators."""


class WanderlustError(Exception):
    """Base class for all Wanderlust errors"""


class StreetDataError(WanderlustError):
    """The street-data provider could not deliver ways for a region"""


class PositionError(WanderlustError):
    """The position source could not produce a fix.

    ``kind`` is one of "permission", "timeout" or "unavailable".
    """

    PERMISSION = "permission"
    TIMEOUT = "timeout"
    UNAVAILABLE = "unavailable"

    def __init__(self, kind: str, message: str = ""):
        self.kind = kind
        super().__init__(message or f"position {kind}")
