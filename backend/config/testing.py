"""Testing configuration."""
from .base import BaseConfig

class TestingConfig(BaseConfig):
    """Testing configuration class."""
    
    # Basic Flask config
    DEBUG = False
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    
    # Database (in-memory SQLite for testing)
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    
    # Rate Limiting (disabled for testing)
    RATELIMIT_ENABLED = False
    RATELIMIT_STORAGE_URI = 'memory://'
    
    PUBLIC_BASE_URL = 'http://testserver/attend'
    
    # No background threads or outbound calls in tests
    SCHEDULER_ENABLED = False
    NETWORK_LOOKUP_ENABLED = False
    TOKEN_RETRY_DELAY_SECONDS = 0
    
    # Logging
    LOG_LEVEL = 'WARNING'
