import logging
import threading
from typing import Callable, Optional
from sqlalchemy.orm import Session
from app.db.database import SessionLocal
from app.rabbitmq.config import reminder_settings
from app.services.balance_service import get_users_with_outstanding_debts

logger = logging.getLogger(__name__)


class DebtReminderManager:
    """Periodically publishes a reminder for every user with outstanding 1-to-1 debts"""

    def __init__(
        self,
        producer_factory: Optional[Callable] = None,
        session_factory: Callable[[], Session] = SessionLocal,
        interval: Optional[int] = None,
    ):
        self.reminder_thread: Optional[threading.Thread] = None
        self.is_running = False
        self.interval = interval or reminder_settings.reminder_interval_seconds
        self.retry_interval = reminder_settings.reminder_retry_seconds
        self.session_factory = session_factory
        self.producer_factory = producer_factory
        self._stop_event = threading.Event()

    def _get_producer(self):
        if self.producer_factory is None:
            from app.rabbitmq.producer import get_rabbitmq_producer
            self.producer_factory = get_rabbitmq_producer
        return self.producer_factory()

    def start(self):
        """Start the reminder loop in a separate thread"""
        if self.is_running:
            logger.warning("Debt reminder process is already running")
            return

        self.is_running = True
        self._stop_event.clear()
        self.reminder_thread = threading.Thread(
            target=self._run_reminders,
            daemon=True,
            name="DebtReminder-Publisher"
        )
        self.reminder_thread.start()
        logger.info("Debt reminder process started")

    def stop(self):
        """Stop the reminder loop"""
        if not self.is_running:
            logger.warning("Debt reminder process is not running")
            return

        self.is_running = False
        self._stop_event.set()

        # Wait for thread to finish
        if self.reminder_thread and self.reminder_thread.is_alive():
            self.reminder_thread.join(timeout=5)
            if self.reminder_thread.is_alive():
                logger.warning("Debt reminder thread did not stop gracefully")

        logger.info("Debt reminder process stopped")

    def _run_reminders(self):
        """Run the reminder loop in the background thread"""
        try:
            logger.info("Starting debt reminder loop")
            while self.is_running:
                try:
                    self.send_reminders()
                    wait = self.interval
                except Exception as e:
                    logger.error(f"Error in debt reminder loop: {e}")
                    wait = self.retry_interval
                # Wait for the next cycle, or wake up early on stop
                if self._stop_event.wait(wait):
                    break
        finally:
            self.is_running = False
            logger.info("Debt reminder thread finished")

    def send_reminders(self) -> int:
        """Compute outstanding debts once and publish one message per debtor"""
        db = self.session_factory()
        try:
            debtors = get_users_with_outstanding_debts(db)
        finally:
            db.close()

        if not debtors:
            logger.info("No outstanding debts, nothing to publish")
            return 0

        producer = self._get_producer()
        published = sum(1 for user_debts in debtors if producer.publish_debt_reminder(user_debts))
        if published < len(debtors):
            logger.warning(f"Published {published} of {len(debtors)} debt reminders")
        else:
            logger.info(f"Published {published} debt reminders")
        return published


# Global reminder manager
_reminder_manager: Optional[DebtReminderManager] = None


def get_reminder_manager() -> DebtReminderManager:
    """Get or create reminder manager instance"""
    global _reminder_manager
    if _reminder_manager is None:
        _reminder_manager = DebtReminderManager()
    return _reminder_manager


def start_debt_reminders():
    """Start the debt reminder process"""
    manager = get_reminder_manager()
    manager.start()


def stop_debt_reminders():
    """Stop the debt reminder process"""
    manager = get_reminder_manager()
    manager.stop()
