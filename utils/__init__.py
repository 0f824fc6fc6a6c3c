"""
mcstat utils package
"""

from .network import AddressResolver, ServerAddress, ResolvedTarget, parse_address

__all__ = [
    'AddressResolver',
    'ServerAddress',
    'ResolvedTarget',
    'parse_address'
]
