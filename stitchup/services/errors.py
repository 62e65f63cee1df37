from __future__ import annotations


class EnquiryError(Exception):
    """Base class for conversation/order domain errors."""


class EnquiryNotFound(EnquiryError):
    pass


class NotAParticipant(EnquiryError):
    """Raised when the caller is neither the customer nor the tailor of the thread."""


class CounterpartNotFound(EnquiryError):
    pass


class InvalidStatusTransition(EnquiryError):
    def __init__(self, current: str, new: str) -> None:
        super().__init__(f"Cannot move enquiry from {current} to {new}")
        self.current = current
        self.new = new


class OtpError(Exception):
    status_code = 401


class OtpExpired(OtpError):
    pass


class OtpInvalid(OtpError):
    pass


class OtpAttemptsExceeded(OtpError):
    status_code = 429


class AccountNotFound(Exception):
    pass


class AccountExists(Exception):
    pass


class EnquiryClosed(EnquiryError):
    """Raised when an action needs an open enquiry but it was already decided."""

    def __init__(self, status: str, action: str) -> None:
        super().__init__(f"Enquiry is {status}; cannot {action}")
        self.status = status
        self.action = action


class ProfileSaveError(Exception):
    pass
