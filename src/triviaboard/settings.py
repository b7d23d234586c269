"""
Configuration settings for Trivia Board
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Trivia Board configuration settings"""
    
    # Server Configuration
    server_port: int = 3001
    server_host: str = "0.0.0.0"
    log_level: str = "INFO"
    
    # Trivia Source
    use_real_source: bool = False
    source_base_url: str = "https://opentdb.com"
    request_timeout: float = 10.0
    min_request_interval: float = 5.0  # Open Trivia DB: one request per IP every 5s
    question_type: str = "multiple"  # multiple, boolean, or "" for any
    
    # Board Shape
    num_categories: int = 6
    clues_per_category: int = 5
    
    # Assembly Settings
    max_attempts: int = 5
    retry_delay: float = 1.0  # seconds between attempts
    overfetch_factor: int = 2
    overfetch_escalation: int = 0  # added to the factor on each retry
    
    class Config:
        env_prefix = "TRIVIABOARD_"
        case_sensitive = False
        env_file = "config/.env"
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()
