import os


class Settings:
    def __init__(self):
        self.app_name = "Fourtify CRM"
        self.api_version = "1.0.0"
        self.environment = os.environ.get("CRM_ENVIRONMENT", "development")
        self.secret_key = os.environ.get("CRM_SECRET_KEY", "CHANGE_ME")
        self.SECRET_KEY = self.secret_key
        self.access_token_expire_minutes = int(os.environ.get("CRM_ACCESS_TOKEN_EXPIRE_MINUTES", "30"))
        self.ACCESS_TOKEN_EXPIRE_MINUTES = self.access_token_expire_minutes
        self.database_url = os.environ.get("CRM_DATABASE_URL", "sqlite:///./crm_portal.db")
        self.log_level = os.environ.get("CRM_LOG_LEVEL", "INFO")
        self.cors_origins = [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]

        # Outbound mail (Resend)
        self.resend_api_key = os.environ.get("RESEND_API_KEY", "")
        self.resend_api_url = os.environ.get("RESEND_API_URL", "https://api.resend.com")
        self.mail_from_email = os.environ.get("MAIL_FROM_EMAIL", "noreply@fourd.com.au")
        self.mail_from_name = os.environ.get("MAIL_FROM_NAME", "Fourtify CRM")

        # Bulk dispatch pacing, kept under the provider rate limit
        self.bulk_email_batch_size = 100
        self.bulk_email_delay_ms = 500
        self.invoice_email_batch_size = 50
        self.invoice_email_delay_ms = 300


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def reset_settings():
    global _settings_instance
    _settings_instance = None
