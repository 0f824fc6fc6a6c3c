"""
MOTD description tree with inherited formatting
"""

import re
from typing import Any, Dict, Iterator, List, Optional, Tuple
from dataclasses import dataclass, field, replace

COLOR_CODES = {
    'black': '0', 'dark_blue': '1', 'dark_green': '2', 'dark_aqua': '3',
    'dark_red': '4', 'dark_purple': '5', 'gold': '6', 'gray': '7',
    'dark_gray': '8', 'blue': '9', 'green': 'a', 'aqua': 'b',
    'red': 'c', 'light_purple': 'd', 'yellow': 'e', 'white': 'f'
}

# Some servers send the non-standard spellings
COLOR_ALIASES = {
    'purple': 'dark_purple', 'grey': 'gray', 'dark_grey': 'dark_gray',
    'pink': 'light_purple'
}

FORMATTING_CODES = {
    'obfuscated': 'k', 'bold': 'l', 'strikethrough': 'm',
    'underlined': 'n', 'italic': 'o'
}

FORMATTING_PATTERN = re.compile(r'§[0-9a-fk-orA-FK-OR]?')

MAX_DEPTH = 32

@dataclass(frozen=True)
class Style:
    """Resolved formatting of one span of text"""
    color: Optional[str] = None
    bold: bool = False
    italic: bool = False
    underlined: bool = False
    strikethrough: bool = False
    obfuscated: bool = False

@dataclass
class Description:
    """One node of a chat component tree.

    Formatting attributes are None when the node does not set them, in which
    case the value is inherited from the parent when rendering.
    """
    text: str = ""
    color: Optional[str] = None
    bold: Optional[bool] = None
    italic: Optional[bool] = None
    underlined: Optional[bool] = None
    strikethrough: Optional[bool] = None
    obfuscated: Optional[bool] = None
    children: List['Description'] = field(default_factory=list)

    @classmethod
    def from_json(cls, obj: Any, depth: int = 0) -> 'Description':
        """Build a tree from a string, component object or component list"""
        if depth > MAX_DEPTH:
            raise ValueError("Description nested too deeply")

        if obj is None:
            return cls()
        if isinstance(obj, str):
            return cls.from_legacy(obj)
        if isinstance(obj, bool):
            return cls(text=str(obj).lower())
        if isinstance(obj, (int, float)):
            return cls(text=str(obj))
        if isinstance(obj, list):
            # First element is the parent of the rest
            if not obj:
                return cls()
            root = cls.from_json(obj[0], depth + 1)
            root.children.extend(cls.from_json(item, depth + 1) for item in obj[1:])
            return root
        if isinstance(obj, dict):
            text = _component_text(obj)
            node = cls(
                text=text if '§' not in text else "",
                color=_normalize_color(obj.get('color')),
                bold=_flag(obj.get('bold')),
                italic=_flag(obj.get('italic')),
                underlined=_flag(obj.get('underlined')),
                strikethrough=_flag(obj.get('strikethrough')),
                obfuscated=_flag(obj.get('obfuscated'))
            )
            if '§' in text:
                # Codes in the text restyle it under the component's own style
                node.children.append(cls.from_legacy(text))
            extra = obj.get('extra')
            if isinstance(extra, list):
                node.children.extend(cls.from_json(item, depth + 1) for item in extra)
            elif extra is not None:
                node.children.append(cls.from_json(extra, depth + 1))
            return node

        raise ValueError(f"Unsupported description type: {type(obj).__name__}")

    @classmethod
    def from_legacy(cls, text: str) -> 'Description':
        """Build a tree from text using section-sign formatting codes"""
        if '§' not in text:
            return cls(text=text)

        # Only attributes set by a code seen so far; the rest stay inherited
        root = cls()
        parts = text.split('§')
        overrides: Dict[str, Any] = {}
        if parts[0]:
            root.children.append(cls(text=parts[0]))
        for part in parts[1:]:
            if not part:
                continue
            overrides = _apply_legacy_code(overrides, part[0].lower())
            if part[1:]:
                root.children.append(cls(text=part[1:], **overrides))
        return root

    def apply_to(self, parent: Style) -> Style:
        """Resolve this node's style against the inherited one"""
        changes = {}
        for name in ('color', 'bold', 'italic', 'underlined', 'strikethrough', 'obfuscated'):
            value = getattr(self, name)
            if value is not None:
                changes[name] = value
        return replace(parent, **changes) if changes else parent


def _component_text(obj: dict) -> str:
    if 'text' in obj:
        return str(obj['text'])
    # Translatable components are shown by key; arguments are not resolved
    if 'translate' in obj:
        return str(obj['translate'])
    return ""


LEGACY_COLORS = {code: name for name, code in COLOR_CODES.items()}
LEGACY_FORMATS = {code: name for name, code in FORMATTING_CODES.items()}


def _apply_legacy_code(overrides: Dict[str, Any], code: str) -> Dict[str, Any]:
    cleared = {name: False for name in FORMATTING_CODES}
    # Color codes also clear any formatting
    if code in LEGACY_COLORS:
        return dict(cleared, color=LEGACY_COLORS[code])
    if code in LEGACY_FORMATS:
        return dict(overrides, **{LEGACY_FORMATS[code]: True})
    if code == 'r':
        # The color falls back to the inherited one
        return cleared
    return overrides


def _normalize_color(color: Any) -> Optional[str]:
    if not isinstance(color, str) or not color:
        return None
    color = color.lower()
    return COLOR_ALIASES.get(color, color)


def _flag(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, str):
        return value.lower() == 'true'
    return bool(value)


def iter_spans(tree: Description, inherited: Style = Style()) -> Iterator[Tuple[str, Style]]:
    """Walk the tree depth-first yielding (text, resolved style) pairs"""
    style = tree.apply_to(inherited)
    if tree.text:
        yield tree.text, style
    for child in tree.children:
        yield from iter_spans(child, style)


def strip_formatting(text: str) -> str:
    """Remove legacy section-sign formatting codes"""
    return FORMATTING_PATTERN.sub('', text)


def render_plain(tree: Description) -> str:
    """Render the tree as plain text without any formatting"""
    return strip_formatting(''.join(text for text, _ in iter_spans(tree)))


def render_legacy(tree: Description) -> str:
    """Render the tree using section-sign formatting codes"""
    output = []
    previous = Style()
    for text, style in iter_spans(tree):
        if style != previous:
            output.append(_legacy_codes(style))
            previous = style
        output.append(text)
    return ''.join(output)


def _legacy_codes(style: Style) -> str:
    # A color code resets formatting, so it has to come first
    codes = '§r'
    if style.color in COLOR_CODES:
        codes += f'§{COLOR_CODES[style.color]}'
    elif style.color and style.color.startswith('#'):
        codes += hex_to_legacy_color(style.color)
    for name, code in FORMATTING_CODES.items():
        if getattr(style, name):
            codes += f'§{code}'
    return codes


def hex_to_legacy_color(hex_color: str) -> str:
    """Convert hex color to nearest legacy color code"""
    try:
        hex_color = hex_color.lstrip('#')
        r = int(hex_color[0:2], 16)
        g = int(hex_color[2:4], 16)
        b = int(hex_color[4:6], 16)
    except (ValueError, IndexError):
        return ''

    if r > 200 and g > 200 and b > 200:
        return '§f'
    elif r < 50 and g < 50 and b < 50:
        return '§0'
    elif r > g and r > b:
        return '§c' if r > 150 else '§4'
    elif g > r and g > b:
        return '§a' if g > 150 else '§2'
    elif b > r and b > g:
        return '§9' if b > 150 else '§1'
    else:
        return '§7'
