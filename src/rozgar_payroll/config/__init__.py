import os


def get_settings_module() -> str:
    # APP_ENV picks the settings module, default is development
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "rozgar_payroll.config.production"

    if env in {"test", "testing"}:
        return "rozgar_payroll.config.testing"

    return "rozgar_payroll.config.development"
