from django.apps import AppConfig


class DailyLedgerConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "daily_ledger"
    verbose_name = "Daily Stock Ledger"
