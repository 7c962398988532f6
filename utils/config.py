from pydantic import BaseModel, SecretStr
from dotenv import load_dotenv
from typing import Optional
import os


class Settings(BaseModel):
    """Runtime configuration, injected into services instead of read globally"""
    razorpay_key_id: str = "rzp_test_your_key_id"
    razorpay_key_secret: SecretStr = SecretStr("your_key_secret")
    razorpay_api_url: str = "https://api.razorpay.com/v1"
    gateway_timeout: float = 10.0

    store_timeout: float = 5.0

    email_user: Optional[str] = None
    email_pass: Optional[SecretStr] = None
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_timeout: float = 15.0
    owner_email: Optional[str] = None

    order_id_prefix: str = "DAISY"

    temporal_host: str = "localhost"
    temporal_port: str = "7233"
    temporal_namespace: str = "default"
    notification_task_queue: str = "notification-task-queue"
    notification_enqueue_timeout: float = 2.0

    api_host: str = "localhost"
    api_port: int = 8000
    log_level: str = "INFO"

    @property
    def temporal_address(self) -> str:
        return f"{self.temporal_host}:{self.temporal_port}"

    @property
    def notification_recipient(self) -> Optional[str]:
        # OWNER_EMAIL overrides the sender mailbox as the owner's inbox
        return self.owner_email or self.email_user

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        env_names = {
            "razorpay_key_id": "RAZORPAY_KEY_ID",
            "razorpay_key_secret": "RAZORPAY_KEY_SECRET",
            "razorpay_api_url": "RAZORPAY_API_URL",
            "gateway_timeout": "GATEWAY_TIMEOUT",
            "store_timeout": "STORE_TIMEOUT",
            "email_user": "EMAIL_USER",
            "email_pass": "EMAIL_PASS",
            "smtp_host": "SMTP_HOST",
            "smtp_port": "SMTP_PORT",
            "smtp_timeout": "SMTP_TIMEOUT",
            "owner_email": "OWNER_EMAIL",
            "order_id_prefix": "ORDER_ID_PREFIX",
            "temporal_host": "TEMPORAL_HOST",
            "temporal_port": "TEMPORAL_PORT",
            "temporal_namespace": "TEMPORAL_NAMESPACE",
            "notification_task_queue": "NOTIFICATION_TASK_QUEUE",
            "notification_enqueue_timeout": "NOTIFICATION_ENQUEUE_TIMEOUT",
            "api_host": "API_HOST",
            "api_port": "API_PORT",
            "log_level": "LOG_LEVEL",
        }
        values = {}
        for field, env_name in env_names.items():
            value = os.getenv(env_name)
            if value is not None and value != "":
                values[field] = value
        return cls(**values)
