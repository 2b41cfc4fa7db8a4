"""Development configuration."""
import os

from .base import BaseConfig

class DevelopmentConfig(BaseConfig):
    """Development configuration class."""
    
    DEBUG = True
    TESTING = False
    
    SQLALCHEMY_DATABASE_URI = os.getenv('DEV_DATABASE_URL') or \
        'sqlite:///rollcall_dev.db'
    SQLALCHEMY_ECHO = True
    
    # Geolocation calls are slow and rate limited upstream
    NETWORK_LOOKUP_ENABLED = os.getenv('NETWORK_LOOKUP_ENABLED', 'false').lower() == 'true'
    
    LOG_LEVEL = 'DEBUG'
