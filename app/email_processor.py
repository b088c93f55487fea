"""
Email Processor CLI

Background worker delivering queued email jobs.
Run this as a separate service next to the API.
"""

import sys

from app.core.config import settings
from app.core.logging import get_logger, setup_logging
from app.core.messaging.broker import get_message_broker
from app.core.messaging.processor import EmailJobProcessor
from app.dependencies import get_email_service

setup_logging()

logger = get_logger(__name__)


def main():
    """Main entry point for the email processor."""
    try:
        logger.info("Starting WFZO Email Processor...")
        processor = EmailJobProcessor(
            get_message_broker(),
            get_email_service(),
            default_max_retries=settings.EMAIL_MAX_RETRIES,
        )
        processor.start_processing()
    except KeyboardInterrupt:
        logger.info("Email processor stopped by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Email processor failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
