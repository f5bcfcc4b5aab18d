"""Configuration settings for the quiz bot."""
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Quiz rules
MASTERY_THRESHOLD = 7  # correct answers needed to master a verb/tense/pronoun
MAX_STRIKES = 2  # wrong answers before the answer is revealed
STREAK_MILESTONE = 5  # celebrate every Nth correct answer in a row
STORAGE_SLOT = "spanishVerbGameProgress"


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///conjubot.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class BotSettings:
    """Bot configuration settings."""
    token: str = os.getenv("TELEGRAM_BOT_TOKEN", "")


@dataclass
class QuizSettings:
    """Quiz rules and persistence slot."""
    mastery_threshold: int = int(os.getenv("MASTERY_THRESHOLD", str(MASTERY_THRESHOLD)))
    max_strikes: int = int(os.getenv("MAX_STRIKES", str(MAX_STRIKES)))
    streak_milestone: int = int(os.getenv("STREAK_MILESTONE", str(STREAK_MILESTONE)))
    milestone_clear_seconds: float = float(os.getenv("MILESTONE_CLEAR_SECONDS", "3.0"))
    review_in_progress_at: int = int(os.getenv("REVIEW_IN_PROGRESS_AT", "3"))
    storage_slot: str = os.getenv("STORAGE_SLOT", STORAGE_SLOT)


@dataclass
class MonitoringSettings:
    """Prometheus exporter settings."""
    metrics_port: int = int(os.getenv("METRICS_PORT", "0"))  # 0 disables the exporter


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_bot_settings() -> BotSettings:
    """Get bot settings."""
    return BotSettings()


def get_quiz_settings() -> QuizSettings:
    """Get quiz settings."""
    return QuizSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    bot: BotSettings = field(default_factory=get_bot_settings)
    quiz: QuizSettings = field(default_factory=get_quiz_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if self.quiz.mastery_threshold < 1:
            raise ValueError("MASTERY_THRESHOLD must be positive")

        if self.quiz.max_strikes < 1:
            raise ValueError("MAX_STRIKES must be positive")

        if self.quiz.streak_milestone < 1:
            raise ValueError("STREAK_MILESTONE must be positive")

        if self.quiz.milestone_clear_seconds < 0:
            raise ValueError("MILESTONE_CLEAR_SECONDS cannot be negative")

        if self.quiz.review_in_progress_at > self.quiz.mastery_threshold:
            raise ValueError("REVIEW_IN_PROGRESS_AT cannot be greater than MASTERY_THRESHOLD")

        if not self.quiz.storage_slot:
            raise ValueError("STORAGE_SLOT is required")

        if self.monitoring.metrics_port < 0:
            raise ValueError("METRICS_PORT cannot be negative")

    def validate_bot(self) -> None:
        """Validate settings needed to talk to Telegram."""
        if not self.bot.token:
            raise ValueError("TELEGRAM_BOT_TOKEN is required")


# Create global settings instance
settings = Settings()
settings.validate()
