"""Fire-and-forget email notifications queued through RabbitMQ."""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Union
from uuid import uuid4

from app.core.enums import EmailTemplateCode, Language
from app.core.logging import get_logger
from app.core.messaging.broker import MessageBroker, get_message_broker
from app.core.observability.metrics import log_counter_increment

logger = get_logger(__name__)


class NotificationService:
    """Queues templated emails for the email processor.

    Callers never see delivery or broker failures: they are logged and the
    method returns False.
    """

    def __init__(
        self, broker_provider: Callable[[], MessageBroker] = get_message_broker
    ):
        self._broker_provider = broker_provider

    def send_templated(
        self,
        to: Optional[str],
        template_code: Union[EmailTemplateCode, str],
        params: Dict[str, Any],
        language: str = Language.EN.value,
    ) -> bool:
        code = (
            template_code.value
            if isinstance(template_code, EmailTemplateCode)
            else template_code
        )
        if not to:
            logger.warning(f"No recipient for {code} email, skipping")
            return False

        job = {
            "id": str(uuid4()),
            "to": to,
            "template_code": code,
            "params": params,
            "language": language,
            "queued_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            self._broker_provider().publish_email_job(job)
            return True
        except Exception as e:
            logger.error(f"Failed to queue {code} email to {to}: {e}")
            log_counter_increment(
                "email_queue_errors_total", labels={"template_code": code}
            )
            return False
