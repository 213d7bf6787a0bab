from collections import Counter
from pathlib import Path
from typing import Iterable
import os
import tempfile

from hardware import KeyboardHardware
from keys import LogicalKey, Printable, FunctionKey, keycode, logical_key_for


BLANK_CELL = '   '


def seed_keys(hardware: KeyboardHardware) -> tuple[LogicalKey, ...]:
    '''
    The logical keys in play for a keyboard: each physical key contributes the key it
    carries in the reference keymap. Optimization only moves these around.
    '''
    return tuple(logical_key_for(slot.code) for slot in hardware.slots)


def _cell(key: LogicalKey) -> str:
    match key:
        case Printable(normal=normal, shifted=shifted):
            return f'{normal} {shifted}'
        case FunctionKey():
            return f'{key.label:<3}'
    raise TypeError(f"Not a logical key: {key!r}")


class Layout:
    '''
    An assignment of logical keys to the physical slots of a keyboard.

    keys[i] is the logical key at hardware.slots[i], and slot_of[key] == i.
    Both are updated together by swap().
    '''
    def __init__(self, hardware: KeyboardHardware, keys: Iterable[LogicalKey]):
        self.hardware = hardware
        self.keys = list(keys)

        if len(self.keys) != len(hardware.slots):
            raise ValueError(f"Layout has {len(self.keys)} keys but {hardware.name} has {len(hardware.slots)} slots")

        self.slot_of = {key: i for i, key in enumerate(self.keys)}
        if len(self.slot_of) != len(self.keys):
            raise ValueError("Layout keys must be unique")

    def __len__(self) -> int:
        return len(self.keys)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Layout):
            return NotImplemented
        return self.hardware is other.hardware and self.keys == other.keys

    def __repr__(self) -> str:
        return f"Layout(hardware='{self.hardware.name}', keys={self.keys!r})"

    def copy(self) -> 'Layout':
        clone = Layout.__new__(Layout)
        clone.hardware = self.hardware
        clone.keys = self.keys.copy()
        clone.slot_of = self.slot_of.copy()
        return clone

    def swap(self, i: int, j: int) -> None:
        '''
        swap the keys at slots i and j, in place
        '''
        key_i, key_j = self.keys[i], self.keys[j]
        self.keys[i], self.keys[j] = key_j, key_i
        self.slot_of[key_i] = j
        self.slot_of[key_j] = i

    def is_permutation_of(self, keys: Iterable[LogicalKey]) -> bool:
        return Counter(self.keys) == Counter(keys)

    def similarity(self, other: 'Layout') -> float:
        '''
        Fraction of slots typing the same key unshifted, averaged with the fraction of
        slots typing the same key shifted. 1.0 for identical layouts.
        '''
        score = 0
        for key1, key2 in zip(self.keys, other.keys):
            if keycode(key1, False) == keycode(key2, False):
                score += 1
            if keycode(key1, True) == keycode(key2, True):
                score += 1
        return score / (len(self.keys) * 2)

    def __str__(self) -> str:
        '''
        Show the layout as a grid of rows and columns, one cell per physical position.
        Printable keys show the unshifted and shifted symbol, function keys a short label.
        '''
        hardware = self.hardware
        cols = range(min(hardware.cols), max(hardware.cols) + 1)
        rule = '-' * (len(cols) * 4 + 1)

        lines = [rule]
        for row in hardware.rows:
            cells = []
            for col in cols:
                i = hardware.index_at.get((row, col))
                if i is None:
                    cells.append(BLANK_CELL)
                else:
                    cells.append(_cell(self.keys[i]))
            lines.append('|' + '|'.join(cells) + '|')
            lines.append(rule)

        return '\n'.join(lines)

    def save(self, path: str | Path) -> None:
        '''
        Write the grid to path, replacing any previous file atomically.
        '''
        path = Path(path)
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f'.{path.name}.', suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(str(self))
                f.write('\n')
            os.replace(tmp_path, path)
        except BaseException:
            os.unlink(tmp_path)
            raise
