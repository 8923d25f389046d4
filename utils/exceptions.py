class AnalyticoError(Exception):
    """Base exception for Analytico errors."""

    default_message = "An error occurred in Analytico"

    def __init__(self, message=None, code=None, details=None):
        self.message = message or self.default_message
        self.code = code
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self):
        """Render the error in the API failure shape."""
        error_dict = {
            'success': False,
            'error': self.message,
        }
        if self.code:
            error_dict['code'] = self.code
        if self.details:
            error_dict['details'] = self.details
        return error_dict


class ValidationError(AnalyticoError, ValueError):
    """Raised when user input breaks a business rule. Nothing is written."""

    default_message = "Validation error"


class NotFoundError(AnalyticoError, LookupError):
    """Raised when a referenced row does not exist for the company."""

    default_message = "Not found"


class BillingError(AnalyticoError):
    """Raised for Stripe configuration problems and rejected webhooks."""

    default_message = "Billing error"
