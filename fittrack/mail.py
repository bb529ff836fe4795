import logging

logger = logging.getLogger(__name__)


class LogMailer:
    """Mail delivery stand-in: records the OTP in the application log."""

    def send_otp(self, email: str, code: str) -> None:
        logger.info("OTP for %s: %s", email, code)
