"""
mcstat UI Package
"""

from .cli import CLIInterface, describe_error, description_to_text

__all__ = [
    'CLIInterface',
    'describe_error',
    'description_to_text'
]
