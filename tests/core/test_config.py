from propcomms.core.config import Settings


def _settings(**overrides):
    values = {"DATABASE_URL": "sqlite:///:memory:", "SECRET_KEY": "k"}
    values.update(overrides)
    return Settings(**values)


class TestTransportConfiguration:
    def test_empty_backends_mean_not_configured(self):
        settings = _settings(EMAIL_BACKEND="", SMS_BACKEND="")
        assert settings.email_configured is False
        assert settings.sms_configured is False

    def test_console_backends_are_configured(self):
        settings = _settings(EMAIL_BACKEND="console", SMS_BACKEND="console")
        assert settings.email_configured is True
        assert settings.sms_configured is True

    def test_twilio_requires_all_credentials(self):
        partial = _settings(SMS_BACKEND="twilio", TWILIO_ACCOUNT_SID="AC1", TWILIO_AUTH_TOKEN="t")
        assert partial.sms_configured is False

        full = _settings(
            SMS_BACKEND="twilio",
            TWILIO_ACCOUNT_SID="AC1",
            TWILIO_AUTH_TOKEN="t",
            TWILIO_FROM_NUMBER="+15550000000",
        )
        assert full.sms_configured is True


class TestCorsOrigins:
    def test_parses_json_list(self):
        settings = _settings(BACKEND_CORS_ORIGINS='["https://app.example.com"]')
        assert settings.cors_origins == ["https://app.example.com"]

    def test_malformed_json_falls_back_to_defaults(self):
        settings = _settings(BACKEND_CORS_ORIGINS="not-json")
        assert settings.cors_origins == ["http://localhost:5173", "http://localhost:3000"]
