"""
mcstat parsers package
"""

from .status_parser import StatusParser, StatusResponse, Player, ServerType
from .description import Description, Style, iter_spans, render_plain, render_legacy
from .forge import ModInfo, ForgeChannel

__all__ = [
    'StatusParser',
    'StatusResponse',
    'Player',
    'ServerType',
    'Description',
    'Style',
    'iter_spans',
    'render_plain',
    'render_legacy',
    'ModInfo',
    'ForgeChannel'
]
