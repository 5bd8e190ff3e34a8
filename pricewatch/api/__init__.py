"""
HTTP read API over the consolidated datasets
"""

from .app import create_app

__all__ = ['create_app']
