from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Loan Desk API"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./loan_desk.db"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Expected administrator credential pair
    admin_email: str = "admin@loandesk.local"
    admin_password: str = "change-me"

    # Live views re-evaluate countdowns on this period
    countdown_refresh_seconds: float = 60.0

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
