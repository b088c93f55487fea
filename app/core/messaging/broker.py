"""RabbitMQ message broker for outbound email jobs."""

# mypy: ignore-errors

import json
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Union

if TYPE_CHECKING:
    from pika.adapters.blocking_connection import BlockingChannel
    from pika.channel import Channel

import pika
from pika.exceptions import AMQPChannelError, AMQPConnectionError
from pika.exchange_type import ExchangeType

from app.core.config import settings
from app.core.observability.metrics import (
    log_connection_event,
    log_counter_increment,
    log_dlq_event,
)

logger = logging.getLogger(__name__)

EMAIL_EXCHANGE = "email.outbound"
DEAD_LETTER_EXCHANGE = "dlx.failed.messages"
EMAIL_QUEUE = "email_dispatch"
EMAIL_DELAY_QUEUE = "email_dispatch_delay"
EMAIL_DLQ = "email_dispatch_dlq"
EMAIL_DLQ_ROUTING_KEY = "email_dispatch.failed"


class MessageBroker:
    """RabbitMQ broker: the API publishes email jobs, the worker consumes them."""

    def __init__(self) -> None:
        self.connection: Optional[pika.BlockingConnection] = None
        self.channel: Optional[Union["Channel", "BlockingChannel"]] = None
        self._connect()

    def _connect(self) -> None:
        """Establish connection to RabbitMQ."""
        try:
            self.connection = pika.BlockingConnection(
                pika.ConnectionParameters(
                    host=settings.RABBITMQ_HOST,
                    port=settings.RABBITMQ_PORT,
                    virtual_host=settings.RABBITMQ_VHOST,
                    credentials=pika.PlainCredentials(
                        settings.RABBITMQ_USER, settings.RABBITMQ_PASSWORD
                    ),
                    heartbeat=600,
                    blocked_connection_timeout=300,
                    connection_attempts=1,
                    socket_timeout=5,
                )
            )
            self.channel = self.connection.channel()
            self._setup_infrastructure()
            logger.info("Connected to RabbitMQ successfully")
            log_connection_event("connected", "rabbitmq")
        except AMQPConnectionError as e:
            logger.error(f"Failed to connect to RabbitMQ: {e}")
            log_connection_event("connection_failed", "rabbitmq", error=str(e))
            raise

    def _setup_infrastructure(self) -> None:
        """Declare the email exchange and the dead letter exchange."""
        try:
            if self.channel:
                self.channel.exchange_declare(
                    exchange=EMAIL_EXCHANGE,
                    exchange_type=ExchangeType.topic,
                    durable=True,
                )
                self.channel.exchange_declare(
                    exchange=DEAD_LETTER_EXCHANGE,
                    exchange_type=ExchangeType.topic,
                    durable=True,
                )
            logger.info("RabbitMQ infrastructure setup completed")
        except AMQPChannelError as e:
            logger.error(f"Failed to setup RabbitMQ infrastructure: {e}")
            raise

    def setup_email_queue(self) -> str:
        """Declare the dispatch queue, its DLQ and the retry delay queue."""
        try:
            if self.channel:
                self.channel.queue_declare(
                    queue=EMAIL_DLQ,
                    durable=True,
                    arguments={
                        "x-message-ttl": 604800000,  # 7 days
                        "x-max-length": 10000,
                        "x-overflow": "drop-head",
                    },
                )
                self.channel.queue_bind(
                    exchange=DEAD_LETTER_EXCHANGE,
                    queue=EMAIL_DLQ,
                    routing_key=EMAIL_DLQ_ROUTING_KEY,
                )

                self.channel.queue_declare(
                    queue=EMAIL_QUEUE,
                    durable=True,
                    arguments={
                        "x-dead-letter-exchange": DEAD_LETTER_EXCHANGE,
                        "x-dead-letter-routing-key": EMAIL_DLQ_ROUTING_KEY,
                    },
                )
                self.channel.queue_bind(
                    exchange=EMAIL_EXCHANGE, queue=EMAIL_QUEUE, routing_key="email.#"
                )

                # Expired retries are dead-lettered back onto the dispatch queue
                self.channel.queue_declare(
                    queue=EMAIL_DELAY_QUEUE,
                    durable=True,
                    arguments={
                        "x-dead-letter-exchange": "",
                        "x-dead-letter-routing-key": EMAIL_QUEUE,
                    },
                )

            logger.info(f"Set up email queue: {EMAIL_QUEUE} with DLQ: {EMAIL_DLQ}")
            log_dlq_event("dlq_declared", EMAIL_DLQ)
            return EMAIL_QUEUE
        except AMQPChannelError as e:
            logger.error(f"Failed to setup email queue {EMAIL_QUEUE}: {e}")
            raise

    def publish_email_job(self, job: Dict[str, Any]) -> None:
        """Publish an email job with retry tracking headers."""
        if not self.is_connected():
            self.reconnect()

        routing_key = f"email.{job.get('template_code', 'raw')}"
        headers = {
            "x-retry-count": 0,
            "x-max-retries": settings.EMAIL_MAX_RETRIES,
            "x-first-publish-time": int(datetime.now(timezone.utc).timestamp() * 1000),
        }

        try:
            if self.channel:
                self.channel.basic_publish(
                    exchange=EMAIL_EXCHANGE,
                    routing_key=routing_key,
                    body=json.dumps(job, default=str),
                    properties=pika.BasicProperties(
                        message_id=job.get("id"),
                        delivery_mode=2,  # Make message persistent
                        content_type="application/json",
                        headers=headers,
                    ),
                )

            log_counter_increment(
                "email_jobs_published_total",
                labels={"template_code": str(job.get("template_code"))},
            )
            logger.info(f"Queued email job {job.get('id')} ({routing_key})")
        except AMQPChannelError as e:
            logger.error(f"Failed to publish email job {job.get('id')}: {e}")
            log_counter_increment(
                "publish_errors_total",
                labels={"event_type": "email_job", "error_type": "channel_error"},
            )
            raise

    def publish_to_delay_queue(
        self, body: bytes, retry_count: int, max_retries: int, delay_seconds: int
    ) -> None:
        """Park a job in the delay queue; it returns to the dispatch queue on expiry."""
        if self.channel:
            self.channel.basic_publish(
                exchange="",
                routing_key=EMAIL_DELAY_QUEUE,
                body=body,
                properties=pika.BasicProperties(
                    delivery_mode=2,
                    content_type="application/json",
                    expiration=str(delay_seconds * 1000),
                    headers={
                        "x-retry-count": retry_count,
                        "x-max-retries": max_retries,
                    },
                ),
            )

    def is_connected(self) -> bool:
        """Check if broker is connected."""
        return (
            self.connection is not None
            and not self.connection.is_closed
            and self.channel is not None
            and not self.channel.is_closed
        )

    def reconnect(self):
        """Reconnect to RabbitMQ."""
        logger.info("Reconnecting to RabbitMQ...")
        self.close()
        self._connect()

    def start_consuming(
        self, queue_name: str, callback: Callable, consumer_tag: str
    ) -> None:
        """Register a manual-ack consumer on ``queue_name``."""
        try:
            if self.channel:
                self.channel.basic_consume(
                    queue=queue_name,
                    on_message_callback=callback,
                    consumer_tag=consumer_tag,
                    auto_ack=False,
                )
            logger.info(f"Started consuming from {queue_name} with tag: {consumer_tag}")
        except AMQPChannelError as e:
            logger.error(f"Failed to start consuming from {queue_name}: {e}")
            raise

    def process_messages(self) -> None:
        """Block dispatching deliveries to registered consumers."""
        try:
            if self.channel:
                self.channel.start_consuming()
        except KeyboardInterrupt:
            logger.info("Received interrupt signal, stopping consumer...")
            if self.channel:
                self.channel.stop_consuming()

    def get_dlq_message_count(self, dlq_name: str = EMAIL_DLQ) -> int:
        """Get the number of messages in the Dead Letter Queue."""
        try:
            if self.channel:
                result = self.channel.queue_declare(queue=dlq_name, passive=True)
                return int(result.method.message_count)
            return 0
        except AMQPChannelError as e:
            logger.error(f"Failed to get DLQ message count: {e}")
            return 0

    def close(self):
        """Close connection."""
        try:
            if self.connection and not self.connection.is_closed:
                self.connection.close()
                logger.info("RabbitMQ connection closed")
        except Exception as e:
            logger.error(f"Error closing RabbitMQ connection: {e}")


# Global message broker instance (lazy initialization)
_message_broker_instance: Optional[MessageBroker] = None


def get_message_broker() -> MessageBroker:
    """Get the global message broker instance (lazy initialization)."""
    global _message_broker_instance
    if _message_broker_instance is None:
        _message_broker_instance = MessageBroker()
    return _message_broker_instance
