'''
Key identities used by the optimizer.

There are two kinds of keys:

- `Keycode` is the raw identity of a physical key, as recorded by the key logger
  and counted in the frequency tables.
- `LogicalKey` is what the optimizer moves around: either a `Printable` pair of
  (unshifted, shifted) symbols, or one of the fixed `FunctionKey`s.
'''

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique


@unique
class Keycode(Enum):
    """
    Raw key identity, named after the key it sits on in a US layout.
    """
    A = 'A'
    B = 'B'
    C = 'C'
    D = 'D'
    E = 'E'
    F = 'F'
    G = 'G'
    H = 'H'
    I = 'I'
    J = 'J'
    K = 'K'
    L = 'L'
    M = 'M'
    N = 'N'
    O = 'O'
    P = 'P'
    Q = 'Q'
    R = 'R'
    S = 'S'
    T = 'T'
    U = 'U'
    V = 'V'
    W = 'W'
    X = 'X'
    Y = 'Y'
    Z = 'Z'
    KEY0 = 'Key0'
    KEY1 = 'Key1'
    KEY2 = 'Key2'
    KEY3 = 'Key3'
    KEY4 = 'Key4'
    KEY5 = 'Key5'
    KEY6 = 'Key6'
    KEY7 = 'Key7'
    KEY8 = 'Key8'
    KEY9 = 'Key9'
    GRAVE = 'Grave'
    MINUS = 'Minus'
    EQUAL = 'Equal'
    LEFT_BRACKET = 'LeftBracket'
    RIGHT_BRACKET = 'RightBracket'
    BACKSLASH = 'BackSlash'
    SEMICOLON = 'Semicolon'
    APOSTROPHE = 'Apostrophe'
    COMMA = 'Comma'
    DOT = 'Dot'
    SLASH = 'Slash'
    SPACE = 'Space'
    TAB = 'Tab'
    ESCAPE = 'Escape'
    ENTER = 'Enter'
    BACKSPACE = 'Backspace'
    CAPS_LOCK = 'CapsLock'
    L_SHIFT = 'LShift'
    R_SHIFT = 'RShift'
    L_CONTROL = 'LControl'
    R_CONTROL = 'RControl'
    L_ALT = 'LAlt'
    R_ALT = 'RAlt'
    L_META = 'LMeta'
    R_META = 'RMeta'
    HOME = 'Home'
    END = 'End'
    PAGE_UP = 'PageUp'
    PAGE_DOWN = 'PageDown'
    LEFT = 'Left'
    RIGHT = 'Right'
    UP = 'Up'
    DOWN = 'Down'
    DELETE = 'Delete'

    @classmethod
    def from_name(cls, name: str) -> 'Keycode':
        '''
        Look up a keycode by its logged name (e.g. "Key1", "LShift", "A").
        Raises ValueError for unknown names.
        '''
        return cls(name)


@unique
class FunctionKey(Enum):
    """
    Keys that produce an action rather than a symbol. Each maps 1:1 to a Keycode.
    """
    BACKSPACE = Keycode.BACKSPACE
    TAB = Keycode.TAB
    ENTER = Keycode.ENTER
    CAPS_LOCK = Keycode.CAPS_LOCK
    L_SHIFT = Keycode.L_SHIFT
    R_SHIFT = Keycode.R_SHIFT
    L_CTRL = Keycode.L_CONTROL
    R_CTRL = Keycode.R_CONTROL
    L_ALT = Keycode.L_ALT
    R_ALT = Keycode.R_ALT
    L_META = Keycode.L_META
    R_META = Keycode.R_META
    SPACE = Keycode.SPACE
    ESCAPE = Keycode.ESCAPE
    HOME = Keycode.HOME
    END = Keycode.END
    PAGE_UP = Keycode.PAGE_UP
    PAGE_DOWN = Keycode.PAGE_DOWN
    LEFT = Keycode.LEFT
    RIGHT = Keycode.RIGHT
    UP = Keycode.UP
    DOWN = Keycode.DOWN
    DELETE = Keycode.DELETE

    @property
    def label(self) -> str:
        return FUNCTION_KEY_LABELS[self]


FUNCTION_KEY_LABELS: dict[FunctionKey, str] = {
    FunctionKey.BACKSPACE: 'Bks',
    FunctionKey.TAB: 'Tab',
    FunctionKey.ENTER: 'Etr',
    FunctionKey.CAPS_LOCK: 'Cap',
    FunctionKey.L_SHIFT: 'LSh',
    FunctionKey.R_SHIFT: 'RSh',
    FunctionKey.L_CTRL: 'LCt',
    FunctionKey.R_CTRL: 'RCt',
    FunctionKey.L_ALT: 'LAt',
    FunctionKey.R_ALT: 'RAt',
    FunctionKey.L_META: 'LMt',
    FunctionKey.R_META: 'RMt',
    FunctionKey.SPACE: 'Spc',
    FunctionKey.ESCAPE: 'Esc',
    FunctionKey.HOME: 'Hom',
    FunctionKey.END: 'End',
    FunctionKey.PAGE_UP: 'PUp',
    FunctionKey.PAGE_DOWN: 'PDn',
    FunctionKey.LEFT: '<--',
    FunctionKey.RIGHT: '-->',
    FunctionKey.UP: 'Up',
    FunctionKey.DOWN: 'Dn',
    FunctionKey.DELETE: 'Del',
}

_FUNCTION_KEY_AT_KEYCODE = {key.value: key for key in FunctionKey}


# the US shift convention: keycode -> (unshifted, shifted)
SYMBOLS_AT_KEYCODE: dict[Keycode, tuple[str, str]] = {
    **{Keycode(c): (c.lower(), c) for c in 'ABCDEFGHIJKLMNOPQRSTUVWXYZ'},
    Keycode.KEY1: ('1', '!'),
    Keycode.KEY2: ('2', '@'),
    Keycode.KEY3: ('3', '#'),
    Keycode.KEY4: ('4', '$'),
    Keycode.KEY5: ('5', '%'),
    Keycode.KEY6: ('6', '^'),
    Keycode.KEY7: ('7', '&'),
    Keycode.KEY8: ('8', '*'),
    Keycode.KEY9: ('9', '('),
    Keycode.KEY0: ('0', ')'),
    Keycode.GRAVE: ('`', '~'),
    Keycode.MINUS: ('-', '_'),
    Keycode.EQUAL: ('=', '+'),
    Keycode.LEFT_BRACKET: ('[', '{'),
    Keycode.RIGHT_BRACKET: (']', '}'),
    Keycode.BACKSLASH: ('\\', '|'),
    Keycode.SEMICOLON: (';', ':'),
    Keycode.APOSTROPHE: ("'", '"'),
    Keycode.COMMA: (',', '<'),
    Keycode.DOT: ('.', '>'),
    Keycode.SLASH: ('/', '?'),
}

KEYCODE_AT_CHAR: dict[str, Keycode] = {
    char: keycode
    for keycode, pair in SYMBOLS_AT_KEYCODE.items()
    for char in pair
}
KEYCODE_AT_CHAR[' '] = Keycode.SPACE


def char_to_keycode(char: str) -> Keycode:
    '''
    The keycode that types `char` (with or without shift) on a US layout.
    '''
    try:
        return KEYCODE_AT_CHAR[char]
    except KeyError:
        raise ValueError(f"No keycode produces character {char!r}") from None


@dataclass(frozen=True)
class Printable:
    """
    A symbol-producing key: what it types without and with shift held.
    """
    normal: str
    shifted: str

    @classmethod
    def of(cls, char: str) -> 'Printable':
        '''
        The default printable pair that contains `char`, e.g. Printable.of('1') == Printable('1', '!')
        '''
        return cls(*SYMBOLS_AT_KEYCODE[char_to_keycode(char)])

    def __str__(self) -> str:
        return f'{self.normal}{self.shifted}'


LogicalKey = Printable | FunctionKey


def keycode(key: LogicalKey, shift: bool = False) -> Keycode:
    '''
    Bridge a logical key to the raw key identity used by the frequency tables.

    With shift=False the unshifted symbol of a printable key decides the keycode,
    with shift=True the shifted symbol does. Function keys ignore shift.
    '''
    match key:
        case Printable(normal=normal, shifted=shifted):
            return char_to_keycode(shifted if shift else normal)
        case FunctionKey():
            return key.value
    raise TypeError(f"Not a logical key: {key!r}")


def label(key: LogicalKey) -> str:
    match key:
        case Printable():
            return str(key)
        case FunctionKey():
            return key.label
    raise TypeError(f"Not a logical key: {key!r}")


def logical_key_for(code: Keycode) -> LogicalKey:
    '''
    The logical key that a physical key carries in the reference (US) keymap.
    '''
    if code in _FUNCTION_KEY_AT_KEYCODE:
        return _FUNCTION_KEY_AT_KEYCODE[code]
    return Printable(*SYMBOLS_AT_KEYCODE[code])
