"""Settings shared by every environment."""
import os


class BaseConfig:
    """Base configuration class."""
    
    SECRET_KEY = os.getenv('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False
    
    # CORS (the student page may be served from another origin)
    CORS_ORIGINS = ["http://localhost:*", "http://127.0.0.1:*"]
    
    # Rate Limiting
    RATELIMIT_STORAGE_URI = os.getenv('REDIS_URL') or 'memory://'
    RATELIMIT_DEFAULT = "200 per day, 50 per hour"
    ATTENDANCE_SUBMIT_LIMIT = "10 per minute"
    
    # Attendance links
    PUBLIC_BASE_URL = os.getenv('PUBLIC_BASE_URL', 'http://localhost:5000/attend')
    
    # Session lifecycle
    SCHEDULER_ENABLED = True
    TOKEN_RETRY_DELAY_SECONDS = 0.1
    
    # Anti-proxy
    PROXY_STRICT_ADDRESS_MATCH = True
    NETWORK_LOOKUP_ENABLED = True
    NETWORK_LOOKUP_URL = os.getenv('NETWORK_LOOKUP_URL', 'https://ipapi.co/{address}/json/')
    NETWORK_LOOKUP_TIMEOUT = 3  # seconds
    
    # Logging
    LOG_LEVEL = 'INFO'
    LOG_FILE = 'logs/app.log'
