"""
Exceptions raised by the registration and fulfillment services.
"""


class RegistrationError(Exception):
    """Base class for failures in the registration workflow."""


class ContentStoreError(RegistrationError):
    """Uploading a file to the content store failed."""


class PaymentGatewayError(RegistrationError):
    """The payment gateway rejected or failed an API call."""


class CardRenderError(RegistrationError):
    """The ID card PDF could not be produced."""


class FulfillmentStepError(RegistrationError):
    """
    A step of the fulfillment pipeline failed. Steps that ran before it
    are not rolled back.
    """

    def __init__(self, step, cause):
        self.step = step
        self.cause = cause
        super().__init__(f"Fulfillment step '{step}' failed: {cause}")
