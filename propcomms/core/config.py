import json

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str

    REDIS_URL: str = "redis://redis:6379/0"

    # Tokens are issued by the identity service; we only decode them
    SECRET_KEY: str
    ALGORITHM: str = "HS256"

    # "" disables email notifications entirely
    EMAIL_BACKEND: str = ""
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM_EMAIL: str = "noreply@propcomms.app"
    SMTP_FROM_NAME: str = "Property Messages"

    # "" disables SMS notifications entirely
    SMS_BACKEND: str = ""
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_FROM_NUMBER: str = ""
    TWILIO_API_URL: str = "https://api.twilio.com/2010-04-01"

    EMAIL_TIMEOUT_SECONDS: float = 10.0
    SMS_TIMEOUT_SECONDS: float = 5.0
    NOTIFICATION_MAX_CONCURRENCY: int = 10

    BLOCK_POSTING_TO_ARCHIVED: bool = False

    FRONTEND_URL: str = "http://localhost:5173"

    BACKEND_CORS_ORIGINS: str = '["http://localhost:5173","http://localhost:3000"]'

    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "Property Messaging API"
    DEBUG: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    @property
    def cors_origins(self) -> list[str]:
        if isinstance(self.BACKEND_CORS_ORIGINS, str):
            try:
                parsed: list[str] = json.loads(self.BACKEND_CORS_ORIGINS)
                return parsed
            except json.JSONDecodeError:
                return ["http://localhost:5173", "http://localhost:3000"]
        return self.BACKEND_CORS_ORIGINS

    @property
    def email_configured(self) -> bool:
        return self.EMAIL_BACKEND in ("console", "smtp")

    @property
    def sms_configured(self) -> bool:
        if self.SMS_BACKEND == "console":
            return True
        if self.SMS_BACKEND == "twilio":
            return bool(
                self.TWILIO_ACCOUNT_SID and self.TWILIO_AUTH_TOKEN and self.TWILIO_FROM_NUMBER
            )
        return False


settings = Settings()
