from crm_portal.app.core.settings import get_settings, reset_settings


def test_settings_defaults():
    settings = get_settings()
    assert settings.app_name == "Fourtify CRM"
    assert settings.environment == "development"
    assert isinstance(settings.secret_key, str) and settings.secret_key
    assert isinstance(settings.database_url, str) and settings.database_url


def test_dispatch_pacing_defaults():
    settings = get_settings()
    assert settings.bulk_email_batch_size == 100
    assert settings.bulk_email_delay_ms == 500
    assert settings.invoice_email_batch_size == 50
    assert settings.invoice_email_delay_ms == 300


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("MAIL_FROM_NAME", "Sales Team")
    monkeypatch.setenv("CRM_ACCESS_TOKEN_EXPIRE_MINUTES", "90")
    reset_settings()
    try:
        settings = get_settings()
        assert settings.mail_from_name == "Sales Team"
        assert settings.access_token_expire_minutes == 90
        assert settings.ACCESS_TOKEN_EXPIRE_MINUTES == 90
    finally:
        monkeypatch.undo()
        reset_settings()


def test_get_settings_is_singleton():
    assert get_settings() is get_settings()
