'''
These classes define the physical attributes of keyboard hardware
'''

from dataclasses import dataclass
from enum import Enum, unique
from typing import List
from collections import defaultdict
import importlib

from keys import Keycode


class ConfigurationError(ValueError):
    """
    The keyboard, finger table or settings are malformed or inconsistent.
    """


@unique
class Hand(Enum):
    """
    Represent the hand of a keyboard user.
    """
    LEFT = 0
    RIGHT = 1


@unique
class FingerType(Enum):
    """
    Represent the type of a finger.
    """
    PINKY = 0
    RING = 1
    MIDDLE = 2
    INDEX = 3
    THUMB = 4


@unique
class Finger(Enum):
    """
    Represent the finger of a keyboard key.
    """
    LP = 0
    LR = 1
    LM = 2
    LI = 3
    LT = 4

    RT = 5
    RI = 6
    RM = 7
    RR = 8
    RP = 9

    @property
    def hand(self) -> Hand:
        """Return the hand that owns this finger."""
        return Hand(self.value // 5)

    @property
    def type(self) -> FingerType:
        """
        Return the type of the finger.
        """
        if self.value < 5:
            return FingerType(self.value)

        return FingerType(9 - self.value)

    @classmethod
    def from_code(cls, code: str) -> 'Finger':
        '''
        Parse a two letter finger code such as "LP" or "RT".
        '''
        try:
            return cls[code]
        except KeyError:
            raise ConfigurationError(f"Unknown finger code {code!r}") from None


@dataclass(frozen=True)
class PhysicalSlot:
    """
    One physical key location.

    Attributes
    ----------
    code : Keycode
        The key this slot carries in the reference keymap.
    row : int
        The logical row index of the key, top row is 0.
    col : int
        The logical column index of the key, leftmost column is 0.
    finger : Finger
        The finger assigned to press the key.
    score : float
        Ease of reaching this slot, in [0, 1] (1 is easiest).
    x : float
        The X-coordinate of the key in key units.
    y : float
        The Y-coordinate of the key in key units.
    """
    code: Keycode
    row: int
    col: int
    finger: Finger
    score: float
    x: float
    y: float

    @property
    def position(self) -> tuple[float, float]:
        return (self.x, self.y)


class KeyboardHardware:
    """
    Represent the physical layout of a keyboard.

    Attributes
    ----------
    slots : List[PhysicalSlot]
        The key slots of the keyboard, in canonical row-major order.
    finger_scores : dict[Finger, float]
        Per-finger efficiency multipliers in (0, 1].
    rows : List[int]
        The rows of the keyboard.
    cols : List[int]
        The columns of the keyboard.
    grid : dict[int, dict[int, PhysicalSlot]]
        row -> col -> slot
    """
    def __init__(self, name: str, slots: List[PhysicalSlot], finger_scores: dict[Finger, float]):
        self.name = name
        self.slots = sorted(slots, key=lambda x: (x.row, x.col))
        self.finger_scores = dict(finger_scores)

        self._validate()

        self.rows = sorted(set(slot.row for slot in self.slots))
        self.cols = sorted(set(slot.col for slot in self.slots))
        self.center_x = (min(slot.x for slot in self.slots) + max(slot.x for slot in self.slots)) / 2

        self.grid = defaultdict(dict)
        self.index_at = {}
        for i, slot in enumerate(self.slots):
            self.grid[slot.row][slot.col] = slot
            self.index_at[(slot.row, slot.col)] = i

    def _validate(self) -> None:
        if not self.slots:
            raise ConfigurationError(f"Keyboard {self.name} has no keys")
        if not self.finger_scores:
            raise ConfigurationError(f"Keyboard {self.name} has no finger scores")

        for finger, score in self.finger_scores.items():
            if not 0 < score <= 1:
                raise ConfigurationError(f"Finger {finger.name} score {score} is outside (0, 1]")

        seen_codes = set()
        seen_cells = set()
        for slot in self.slots:
            if slot.finger not in self.finger_scores:
                raise ConfigurationError(f"Key {slot.code.value} uses finger {slot.finger.name} which has no finger score")
            if not 0 <= slot.score <= 1:
                raise ConfigurationError(f"Key {slot.code.value} score {slot.score} is outside [0, 1]")
            if slot.code in seen_codes:
                raise ConfigurationError(f"Key {slot.code.value} appears more than once")
            if (slot.row, slot.col) in seen_cells:
                raise ConfigurationError(f"More than one key at row {slot.row} col {slot.col}")
            seen_codes.add(slot.code)
            seen_cells.add((slot.row, slot.col))

    def __len__(self) -> int:
        return len(self.slots)

    @classmethod
    def from_name(cls, name: str) -> 'KeyboardHardware':
        """
        Create a KeyboardHardware instance from a name.

        Parameters
        ----------
        name : str
            The name of the keyboard hardware module in the keebs directory.

        Returns
        -------
        KeyboardHardware
            The keyboard hardware instance from the specified module.
        """
        try:
            module = importlib.import_module('keebs.' + name)
        except ModuleNotFoundError:
            raise ConfigurationError(f"Keyboard {name!r} not found in ./keebs") from None
        return module.KEYBOARD

    @classmethod
    def from_rows(
        cls,
        name: str,
        finger_scores: dict[str, float],
        rows: list[list[tuple[str, str, int] | None]],
    ) -> 'KeyboardHardware':
        '''
        Build a keyboard from a compact grid description.

        finger_scores maps finger codes to percentages, e.g. {'LP': 70, ...}.
        Each row is a list of cells, either None for a blank cell, or a tuple
        (keycode name, finger code, score percentage). The cell at row r, col c
        is placed at (x, y) = (c, r).
        '''
        fingers = {Finger.from_code(code): score / 100 for code, score in finger_scores.items()}

        slots = []
        for row, cells in enumerate(rows):
            for col, cell in enumerate(cells):
                if cell is None:
                    continue
                code_name, finger_code, score = cell
                try:
                    code = Keycode.from_name(code_name)
                except ValueError:
                    raise ConfigurationError(f"Unknown key {code_name!r} at row {row} col {col}") from None
                slots.append(PhysicalSlot(
                    code=code,
                    row=row,
                    col=col,
                    finger=Finger.from_code(finger_code),
                    score=score / 100,
                    x=float(col),
                    y=float(row),
                ))

        return cls(name, slots, fingers)

    def str(self, show_finger_names: bool = False, show_scores: bool = False) -> str:
        '''
        Show the keyboard in a human-readable format.

        Parameters
        ----------
        show_finger_names : bool
            Show the finger names instead of the key names.
        show_scores : bool
            Show the base score (percent) of each key instead of the key names.
        '''

        def _str_slot(slot: PhysicalSlot) -> str:
            if show_finger_names:
                return slot.finger.name
            if show_scores:
                return f'{round(slot.score * 100)}'
            return slot.code.value[:3]

        lines = []
        for row in self.rows:
            cells = [
                f'{_str_slot(self.grid[row][col]):<3}' if col in self.grid[row] else '   '
                for col in range(min(self.cols), max(self.cols) + 1)
            ]
            lines.append('|' + '|'.join(cells) + '|')

        return '\n'.join(lines)


if __name__ == "__main__":
    keyboard = KeyboardHardware.from_name('split68')
    print(keyboard.str())
    print()
    print(keyboard.str(show_finger_names=True))
    print()
    print(keyboard.str(show_scores=True))
