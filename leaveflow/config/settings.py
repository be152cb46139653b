"""Application Settings - Central Configuration"""
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
    
    # MongoDB
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "hr_leave_dev"
    leave_requests_collection: str = "leave_requests"
    notification_outbox_collection: str = "notification_outbox"
    
    # Logging
    logs_path: str = "./logs"
    log_level: str = "INFO"
    log_to_file: bool = False
    
    # Workflow rules
    min_rejection_reason_length: int = 10
    min_request_reason_length: int = 10
    max_request_reason_length: int = 500
    medical_documentation_threshold_days: int = 3  # Sick leave longer than this needs a doctor
    mission_purpose_max_length: int = 500
    
    # Environment
    environment: str = "development"
    
    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.environment.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
