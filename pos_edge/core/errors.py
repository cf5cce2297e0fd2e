# pos_edge/core/errors.py
from typing import Any, Optional


class PosError(Exception):
    """Base class for every error raised by the edge node."""


class NotFoundError(PosError):
    pass


class BusinessError(PosError):
    """A request that is well formed but breaks a shop rule."""


class InvalidVariantError(BusinessError):
    pass


class EmptyCartError(BusinessError):
    pass


class NoActiveBranchError(BusinessError):
    pass


class CheckoutInProgressError(BusinessError):
    pass


class BackendError(PosError):
    """The backend data service rejected or failed a call."""


class CheckoutFailedError(PosError):
    """Checkout stopped before the sale could be kept.

    ``result`` is the ``CheckoutResult`` describing how far the commit got.
    """

    def __init__(self, message: str, result: Optional[Any] = None):
        super().__init__(message)
        self.result = result
