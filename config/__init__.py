"""
Configuration module.
"""

from .pipeline import PipelineConfig, load_config, save_config
from .logging_config import setup_logging

__all__ = [
    'PipelineConfig',
    'load_config',
    'save_config',
    'setup_logging',
]
