"""Settings for the Rollcall attendance service.

One class per deployment environment, all built on ``BaseConfig``. The
environment is picked by name, falling back to ``FLASK_ENV``. Unknown names
resolve to development settings.
"""
import os
from typing import Type

from .base import BaseConfig
from .development import DevelopmentConfig
from .production import ProductionConfig
from .testing import TestingConfig

DEFAULT_ENV = 'development'

ENVIRONMENTS = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
}

def get_config(config_name: str = None) -> Type[BaseConfig]:
    """Config class for `config_name`, or for `FLASK_ENV` when none is given."""
    name = (config_name or os.getenv('FLASK_ENV') or DEFAULT_ENV).strip().lower()
    return ENVIRONMENTS.get(name, ENVIRONMENTS[DEFAULT_ENV])
