from pydantic_settings import BaseSettings, SettingsConfigDict


class RabbitMQConfig(BaseSettings):
    """Connection and routing settings, read from RABBITMQ_* / DEBT_REMINDER_* env vars"""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    rabbitmq_host: str = "localhost"
    rabbitmq_port: int = 5672
    rabbitmq_user: str = "guest"
    rabbitmq_password: str = "guest"
    rabbitmq_vhost: str = "/"
    rabbitmq_heartbeat: int = 600

    debt_reminder_exchange: str = "ledger.notifications"
    debt_reminder_routing_key: str = "debt.reminder"


class ReminderSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    reminders_enabled: bool = False
    reminder_interval_seconds: int = 86400  # Once a day
    reminder_retry_seconds: int = 60


rabbitmq_config = RabbitMQConfig()
reminder_settings = ReminderSettings()
