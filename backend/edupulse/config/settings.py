"""
Configuration settings for EduPulse.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parents[2] / '.env')


class Settings:
    """Application settings loaded from environment."""
    
    # Remote spreadsheet store
    STORE_URL: str = os.environ.get("EDUPULSE_STORE_URL", "").strip()
    STORE_TIMEOUT: float = float(os.environ.get("EDUPULSE_STORE_TIMEOUT", 30))
    
    # Server
    PORT: int = int(os.environ.get("PORT", 8001))
    HOST: str = os.environ.get("HOST", "0.0.0.0")
    DEBUG: bool = os.environ.get("DEBUG", "False").lower() == "true"
    
    # Grading
    DEFAULT_TARGET_SCORE: float = 8.0  # 0-10 scale
    SECONDS_PER_QUESTION: int = 60  # Used when a lesson has no time limit
    QUIZ_AUTO_SUBMIT: bool = os.environ.get("QUIZ_AUTO_SUBMIT", "True").lower() == "true"
    
    # Analytics
    LEADERBOARD_SIZE: int = 5
    
    # Logging
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")
    
    def validate(self):
        """Validate critical settings."""
        if not self.STORE_URL:
            raise ValueError("EDUPULSE_STORE_URL environment variable not set")
        if self.STORE_TIMEOUT <= 0:
            raise ValueError("EDUPULSE_STORE_TIMEOUT must be positive")
        return True


# Global settings instance
settings = Settings()
