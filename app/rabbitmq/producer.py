import json
import logging
from datetime import datetime, timezone
from typing import Optional
import pika
from app.schemas.ledger_schema import UserDebts
from .config import rabbitmq_config, RabbitMQConfig

logger = logging.getLogger(__name__)


class RabbitMQProducer:
    """Handles publishing messages to RabbitMQ"""

    def __init__(self, config: RabbitMQConfig = rabbitmq_config):
        self.config = config
        self.connection: Optional[pika.BlockingConnection] = None
        self.channel: Optional[pika.adapters.blocking_connection.BlockingChannel] = None

    def create_connection(self) -> pika.BlockingConnection:
        credentials = pika.PlainCredentials(self.config.rabbitmq_user, self.config.rabbitmq_password)
        parameters = pika.ConnectionParameters(
            host=self.config.rabbitmq_host,
            port=self.config.rabbitmq_port,
            virtual_host=self.config.rabbitmq_vhost,
            credentials=credentials,
            heartbeat=self.config.rabbitmq_heartbeat,
        )
        return pika.BlockingConnection(parameters)

    def connect(self) -> None:
        """Establish connection to RabbitMQ and declare the reminder exchange"""
        try:
            self.connection = self.create_connection()
            self.channel = self.connection.channel()
            self.channel.exchange_declare(
                exchange=self.config.debt_reminder_exchange,
                exchange_type="topic",
                durable=True,
            )
            logger.info("RabbitMQ producer connected successfully")
        except Exception as e:
            logger.error(f"Failed to connect RabbitMQ producer: {e}")
            raise

    def disconnect(self) -> None:
        """Close RabbitMQ connection"""
        if self.channel and not self.channel.is_closed:
            self.channel.close()
        if self.connection and not self.connection.is_closed:
            self.connection.close()
        logger.info("RabbitMQ producer disconnected")

    def publish_debt_reminder(self, user_debts: UserDebts) -> bool:
        """
        Publish one debt reminder message for a user who owes money

        Args:
            user_debts: The debtor and the creditors they owe

        Returns:
            bool: True if message published successfully, False otherwise
        """
        if not self.connection or self.connection.is_closed:
            self.connect()

        try:
            message_data = user_debts.model_dump(mode="json")
            message_data["timestamp"] = datetime.now(timezone.utc).isoformat()

            self.channel.basic_publish(
                exchange=self.config.debt_reminder_exchange,
                routing_key=self.config.debt_reminder_routing_key,
                body=json.dumps(message_data),
                properties=pika.BasicProperties(
                    delivery_mode=2,  # Make message persistent
                    content_type='application/json',
                    correlation_id=user_debts.user_id,
                )
            )

            logger.info(f"Published debt reminder for user {user_debts.user_id} ({len(user_debts.debts)} debts)")
            return True

        except Exception as e:
            logger.error(f"Failed to publish debt reminder for user {user_debts.user_id}: {e}")
            return False


# Global producer instance
_rabbitmq_producer: Optional[RabbitMQProducer] = None


def get_rabbitmq_producer() -> RabbitMQProducer:
    """Get or create RabbitMQ producer instance"""
    global _rabbitmq_producer
    if _rabbitmq_producer is None:
        _rabbitmq_producer = RabbitMQProducer()
        _rabbitmq_producer.connect()
    return _rabbitmq_producer


def close_rabbitmq_producer() -> None:
    """Close RabbitMQ producer connection"""
    global _rabbitmq_producer
    if _rabbitmq_producer:
        _rabbitmq_producer.disconnect()
        _rabbitmq_producer = None
