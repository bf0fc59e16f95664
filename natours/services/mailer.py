import asyncio
import logging

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from natours.core import config
from natours.core.exceptions import DeliveryError

logger = logging.getLogger(__name__)


class Mailer:
    """Sends plain-text email through SendGrid."""

    def __init__(
        self,
        api_key: str | None = None,
        from_email: str | None = None,
        timeout: float | None = None,
    ):
        self.api_key = config.SENDGRID_API_KEY if api_key is None else api_key
        self.from_email = config.MAIL_FROM_EMAIL if from_email is None else from_email
        self.timeout = config.MAIL_TIMEOUT_SECONDS if timeout is None else timeout

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.from_email)

    def _deliver(self, message: Mail) -> None:
        response = SendGridAPIClient(self.api_key).send(message)
        if response.status_code >= 400:
            raise DeliveryError(f"Mail provider rejected the message (status {response.status_code})")

    async def send(self, to: str, subject: str, body: str) -> None:
        if not self.configured:
            if config.is_production():
                raise DeliveryError("Email delivery is not configured")
            # Bodies may hold a one-time reset token; DEBUG only.
            logger.warning("SendGrid not configured; email to %s not sent (subject: %s).", to, subject)
            logger.debug("Undelivered email body:\n%s", body)
            return

        message = Mail(
            from_email=self.from_email,
            to_emails=to,
            subject=subject,
            plain_text_content=body,
        )
        loop = asyncio.get_running_loop()
        try:
            # The SendGrid client blocks, so it runs on the default executor.
            await asyncio.wait_for(loop.run_in_executor(None, self._deliver, message), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise DeliveryError(f"Timed out after {self.timeout}s sending email") from exc
        except DeliveryError:
            raise
        except Exception as exc:
            raise DeliveryError(f"Error sending email: {exc}") from exc
        logger.info("Email sent to %s", to)


def get_mailer() -> Mailer:
    return Mailer()
