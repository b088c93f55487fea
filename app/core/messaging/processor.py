"""Background processor delivering queued email jobs."""

import json
import logging
import time
from typing import Any, Dict

from app.core.messaging.broker import EMAIL_QUEUE, MessageBroker
from app.core.observability.metrics import (
    log_counter_increment,
    log_histogram_record,
    log_processing_event,
)

logger = logging.getLogger(__name__)

REQUIRED_JOB_FIELDS = ("id", "to", "template_code")


class EmailJobProcessor:
    """Consumes ``email_dispatch`` and hands each job to the email service.

    Template and parameter errors (``ValueError``) are permanent and go
    straight to the DLQ; transport errors are retried with exponential
    backoff through the delay queue.
    """

    def __init__(self, broker: MessageBroker, email_service, default_max_retries=3):
        self.broker = broker
        self.email_service = email_service
        self.default_max_retries = default_max_retries

    def process_job_callback(self, channel, method, properties, body):
        """Callback for one delivery from the dispatch queue."""
        start_time = time.time()
        retry_count = 0
        max_retries = self.default_max_retries
        job_id = None

        if properties.headers and "x-retry-count" in properties.headers:
            retry_count = int(properties.headers["x-retry-count"])
            max_retries = int(
                properties.headers.get("x-max-retries", self.default_max_retries)
            )

        try:
            job = json.loads(body)
            job_id = job.get("id")
            logger.info(
                f"Processing email job: {job_id} (retry: {retry_count}/{max_retries})"
            )
            log_processing_event("processing_started", job_id, retry_count=retry_count)

            if not self._validate_job(job):
                logger.error(f"Invalid email job: {job}")
                channel.basic_nack(delivery_tag=method.delivery_tag, requeue=False)
                return

            self.email_service.send_templated_email(
                to=job["to"],
                template_code=job["template_code"],
                params=job.get("params") or {},
                language=job.get("language") or "en",
            )
            channel.basic_ack(delivery_tag=method.delivery_tag)

            processing_time = (time.time() - start_time) * 1000
            log_counter_increment("emails_sent_total", labels={"status": "success"})
            log_histogram_record("email_processing_duration_ms", processing_time)
            log_processing_event(
                "processing_completed", job_id, processing_time_ms=processing_time
            )

        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse email job JSON: {e}")
            log_counter_increment(
                "processing_errors_total", labels={"error_type": "json_decode"}
            )
            channel.basic_nack(delivery_tag=method.delivery_tag, requeue=False)
        except ValueError as e:
            # Missing template, translation or params will not fix themselves
            logger.error(f"Email job {job_id} rejected: {e}")
            log_counter_increment(
                "processing_errors_total", labels={"error_type": "template"}
            )
            log_processing_event(
                "processing_failed", job_id, error_type="template", error=str(e)
            )
            channel.basic_nack(delivery_tag=method.delivery_tag, requeue=False)
        except Exception as e:
            logger.error(f"Error delivering email job {job_id}: {e}")
            log_counter_increment(
                "processing_errors_total", labels={"error_type": "delivery"}
            )
            log_processing_event(
                "processing_failed", job_id, error_type="delivery", error=str(e)
            )
            self._handle_retry(
                channel, method, body, retry_count, max_retries, str(e)
            )

    def _handle_retry(self, channel, method, body, retry_count, max_retries, error_msg):
        """Retry with exponential backoff, dead-lettering after ``max_retries``."""
        if retry_count < max_retries:
            new_retry_count = retry_count + 1
            delay_seconds = 2**retry_count

            log_counter_increment(
                "email_retries_total", labels={"retry_count": str(new_retry_count)}
            )
            logger.warning(
                f"Retrying email in {delay_seconds}s "
                f"(attempt {new_retry_count}/{max_retries}): {error_msg}"
            )

            try:
                self.broker.publish_to_delay_queue(
                    body, new_retry_count, max_retries, delay_seconds
                )
                channel.basic_ack(delivery_tag=method.delivery_tag)
            except Exception as delay_error:
                logger.error(f"Failed to send email job to delay queue: {delay_error}")
                channel.basic_nack(delivery_tag=method.delivery_tag, requeue=True)
        else:
            logger.error(f"Max retries exceeded for email job, sending to DLQ: {error_msg}")
            log_counter_increment(
                "emails_sent_to_dlq_total", labels={"max_retries": str(max_retries)}
            )
            log_processing_event(
                "job_sent_to_dlq", None, max_retries=max_retries, error=error_msg
            )
            channel.basic_nack(delivery_tag=method.delivery_tag, requeue=False)

    def _validate_job(self, job: Dict[str, Any]) -> bool:
        return all(job.get(field) for field in REQUIRED_JOB_FIELDS)

    def start_processing(self):
        """Declare queues and block consuming email jobs."""
        try:
            queue_name = self.broker.setup_email_queue()
            self.broker.channel.basic_qos(prefetch_count=1)
            self.broker.start_consuming(
                queue_name, self.process_job_callback, "email_processor"
            )
            logger.info(f"Email processor consuming from {EMAIL_QUEUE}")
            self.broker.process_messages()
        except KeyboardInterrupt:
            logger.info("Email processor stopped by user")
        finally:
            self.broker.close()
