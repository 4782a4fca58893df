"""Key press translation — maps keyboard events to host actions.

translate_key() is a pure function of (key, modifiers):
  1. A single printable character without Ctrl/Alt types that character
     (Shift alone is allowed; the key already carries the shifted glyph).
  2. Otherwise the key name is prefixed with "C+", "M+", "S+" (in that
     order, for Ctrl, Alt, Shift) and looked up in KEYMAP.
  3. Otherwise F<n> keys become program function keys; Shift adds 13.
  4. Anything else (bare modifiers, unmapped keys) is left unhandled.

Key function: translate_key().
"""

import re
from dataclasses import dataclass

from .protocol import Action

# Shift+F<n> maps onto the upper PF range
_SHIFT_PF_OFFSET = 13

_FUNCTION_KEY_RE = re.compile(r"^F(\d+)$")

# modifier-prefixed key name -> (action, args)
KEYMAP: dict[str, tuple[str, tuple[str, ...]]] = {
    "PageUp": ("Scroll", ("backward",)),
    "PageDown": ("Scroll", ("forward",)),
    "Backspace": ("Backspace", ()),
    "Enter": ("Enter", ()),
    "Tab": ("Tab", ()),
    "S+Tab": ("Backtab", ()),
    "ArrowUp": ("Up", ()),
    "ArrowDown": ("Down", ()),
    "ArrowRight": ("Right", ()),
    "ArrowLeft": ("Left", ()),
    "M+r": ("Reset", ()),
    "M+a": ("Attn", ()),
    "M+c": ("Reconnect", ()),
    "Insert": ("Toggle", ("insertMode",)),
}


@dataclass(frozen=True, slots=True)
class KeyEvent:
    """A key press: key name (or literal character) plus modifier state."""

    key: str
    ctrl: bool = False
    alt: bool = False
    shift: bool = False

    @property
    def key_name(self) -> str:
        """Key name with modifier prefixes, as used by KEYMAP."""
        return "".join(
            (
                "C+" if self.ctrl else "",
                "M+" if self.alt else "",
                "S+" if self.shift else "",
                self.key,
            )
        )


@dataclass(frozen=True, slots=True)
class KeyResult:
    """A translated key press and how the event should be consumed."""

    action: Action
    prevent_default: bool = False
    stop_propagation: bool = False
    stop_immediate_propagation: bool = False


def translate_key(event: KeyEvent) -> KeyResult | None:
    """Translate a key press into at most one action (None if unhandled)."""
    if len(event.key) == 1 and not event.ctrl and not event.alt:
        return KeyResult(
            action=Action("Key", (event.key,)),
            stop_propagation=True,
        )

    mapped = KEYMAP.get(event.key_name)
    if mapped is not None:
        name, args = mapped
        return KeyResult(
            action=Action(name, args),
            prevent_default=True,
            stop_propagation=True,
        )

    match = _FUNCTION_KEY_RE.match(event.key)
    if match:
        number = int(match.group(1))
        if event.shift:
            number += _SHIFT_PF_OFFSET
        return KeyResult(
            action=Action("PF", (str(number),)),
            prevent_default=True,
            stop_propagation=True,
            stop_immediate_propagation=True,
        )

    return None
