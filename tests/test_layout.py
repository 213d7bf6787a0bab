import sys
from pathlib import Path

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from hardware import KeyboardHardware
from keys import FunctionKey, Printable
from layout import Layout, seed_keys


@pytest.fixture
def hardware():
    return KeyboardHardware.from_rows(
        'tiny',
        {'LI': 100, 'RI': 100},
        [
            [('A', 'LI', 100), ('B', 'LI', 100), None, ('C', 'RI', 100)],
            [None, ('LShift', 'LI', 50), ('Key1', 'RI', 50), ('Left', 'RI', 50)],
        ],
    )


def _assert_consistent(layout):
    for i, key in enumerate(layout.keys):
        assert layout.slot_of[key] == i
    assert len(layout.slot_of) == len(layout.keys)


def test_seed_keys(hardware):
    assert seed_keys(hardware) == (
        Printable('a', 'A'),
        Printable('b', 'B'),
        Printable('c', 'C'),
        FunctionKey.L_SHIFT,
        Printable('1', '!'),
        FunctionKey.LEFT,
    )


def test_swap_updates_both_views(hardware):
    layout = Layout(hardware, seed_keys(hardware))
    layout.swap(0, 4)
    assert layout.keys[0] == Printable('1', '!')
    assert layout.keys[4] == Printable('a', 'A')
    _assert_consistent(layout)


def test_swap_twice_restores(hardware):
    rng = np.random.default_rng(1)
    layout = Layout(hardware, seed_keys(hardware))
    for _ in range(50):
        i, j = rng.integers(0, len(layout), size=2)
        keys, slot_of = list(layout.keys), dict(layout.slot_of)
        layout.swap(i, j)
        layout.swap(i, j)
        assert layout.keys == keys
        assert layout.slot_of == slot_of


def test_copy_is_independent(hardware):
    layout = Layout(hardware, seed_keys(hardware))
    clone = layout.copy()
    clone.swap(0, 1)
    assert layout.keys == list(seed_keys(hardware))
    assert clone != layout
    _assert_consistent(clone)
    _assert_consistent(layout)


def test_rejects_bad_keys(hardware):
    keys = list(seed_keys(hardware))
    with pytest.raises(ValueError):
        Layout(hardware, keys[:-1])
    with pytest.raises(ValueError):
        Layout(hardware, keys[:-1] + [keys[0]])


def test_similarity(hardware):
    layout = Layout(hardware, seed_keys(hardware))
    assert layout.similarity(layout) == 1.0

    other = layout.copy()
    other.swap(0, 1)
    assert other.similarity(layout) == pytest.approx(4 / 6)
    assert layout.similarity(other) == other.similarity(layout)


def test_similarity_counts_shifted_symbols_separately(hardware):
    keys = list(seed_keys(hardware))
    other = keys.copy()
    # same unshifted symbol, different shifted symbol
    other[0] = Printable('a', '!')
    layout = Layout(hardware, keys)
    changed = Layout(hardware, other)
    assert layout.similarity(changed) == pytest.approx(11 / 12)


def test_str_grid(hardware):
    layout = Layout(hardware, seed_keys(hardware))
    lines = str(layout).splitlines()
    assert lines[0] == '-' * 17
    assert lines[1] == '|a A|b B|   |c C|'
    assert lines[3] == '|   |LSh|1 !|<--|'
    assert lines[4] == lines[0]


def test_save_overwrites(hardware, tmp_path):
    path = tmp_path / 'best.txt'
    layout = Layout(hardware, seed_keys(hardware))
    layout.save(path)
    first = path.read_text()
    assert 'a A' in first

    layout.swap(0, 3)
    layout.save(path)
    assert path.read_text() != first
    assert list(tmp_path.iterdir()) == [path]


def test_permutation_check(hardware):
    layout = Layout(hardware, seed_keys(hardware))
    layout.swap(1, 5)
    assert layout.is_permutation_of(seed_keys(hardware))
