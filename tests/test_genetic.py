import sys
from collections import Counter
from pathlib import Path

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from genetic import (
    FirstDuplicateRepair,
    GenomeConfig,
    NearestSlotRepair,
    PartialLayout,
    RepairError,
    crossover,
    gen,
    mutate,
    repair,
)
from hardware import KeyboardHardware
from keys import Printable
from layout import Layout, seed_keys


@pytest.fixture(scope='module')
def hardware():
    return KeyboardHardware.from_name('split68')


@pytest.fixture
def line():
    # five keys on one row, one unit apart
    return KeyboardHardware.from_rows(
        'line',
        {'LI': 100},
        [[('A', 'LI', 100), ('B', 'LI', 100), ('C', 'LI', 100), ('D', 'LI', 100), ('E', 'LI', 100)]],
    )


a, b, c, d, e = (Printable.of(ch) for ch in 'abcde')


def _is_permutation(layout, seed):
    return Counter(layout.keys) == Counter(seed) and all(layout.slot_of[key] == i for i, key in enumerate(layout.keys))


def test_gen_is_permutation(hardware):
    config = GenomeConfig.from_hardware(hardware)
    rng = np.random.default_rng(0)
    layouts = [gen(config, rng) for _ in range(20)]
    for layout in layouts:
        assert _is_permutation(layout, config.keys)
    assert len({tuple(layout.keys) for layout in layouts}) == 20


def test_crossover_children_are_permutations(hardware):
    config = GenomeConfig.from_hardware(hardware)
    rng = np.random.default_rng(1)
    population = [gen(config, rng) for _ in range(10)]
    for _ in range(50):
        i, j = rng.choice(len(population), size=2, replace=False)
        for child in crossover(population[i], population[j], config, rng):
            assert _is_permutation(child, config.keys)


def test_crossover_nearest_slot_children_are_permutations(hardware):
    config = GenomeConfig.from_hardware(hardware, repair='nearest_slot')
    rng = np.random.default_rng(2)
    p1, p2 = gen(config, rng), gen(config, rng)
    for _ in range(50):
        for child in crossover(p1, p2, config, rng):
            assert _is_permutation(child, config.keys)


def test_crossover_of_identical_parents(hardware):
    config = GenomeConfig.from_hardware(hardware)
    rng = np.random.default_rng(3)
    parent = gen(config, rng)
    child1, child2 = crossover(parent, parent.copy(), config, rng)
    assert child1.keys == parent.keys
    assert child2.keys == parent.keys


def test_mutate_keeps_permutation(hardware):
    config = GenomeConfig.from_hardware(hardware)
    rng = np.random.default_rng(4)
    layout = gen(config, rng)
    for rate in (0.0, 0.001, 0.1, 1.0):
        mutate(layout, rate, rng)
        assert _is_permutation(layout, config.keys)


def test_mutate_rate_zero_is_noop(hardware):
    config = GenomeConfig.from_hardware(hardware)
    rng = np.random.default_rng(5)
    layout = gen(config, rng)
    before = list(layout.keys)
    mutate(layout, 0.0, rng)
    assert layout.keys == before


def test_mutate_swaps_about_rate_times_pairs(hardware):
    config = GenomeConfig.from_hardware(hardware)
    rng = np.random.default_rng(6)
    layout = gen(config, rng)
    before = list(layout.keys)
    mutate(layout, 0.01, rng)
    # 2278 pairs at 1% is ~23 swaps, which moves many keys
    moved = sum(1 for x, y in zip(before, layout.keys) if x != y)
    assert moved > 0


def test_first_duplicate_repair(line):
    partial = PartialLayout.from_keys([a, b, a, b, e], seed_keys(line), {})
    assert partial.missing == (c, d)
    # first duplicate pair is (0, 2): slot 2 gets c; then (1, 3): slot 3 gets d
    assert FirstDuplicateRepair()(partial, line) == [a, b, c, d, e]


def test_first_duplicate_repair_overwrites_later_occurrence(line):
    partial = PartialLayout.from_keys([b, a, c, d, b], seed_keys(line), {})
    assert FirstDuplicateRepair()(partial, line) == [b, a, c, d, e]


def test_nearest_slot_repair(line):
    # e used to sit at slot 0, so the duplicate 'a' nearest to slot 0 is replaced
    partial = PartialLayout.from_keys([a, b, c, d, a], seed_keys(line), {e: 0})
    assert NearestSlotRepair()(partial, line) == [e, b, c, d, a]

    partial = PartialLayout.from_keys([a, b, c, d, a], seed_keys(line), {e: 4})
    assert NearestSlotRepair()(partial, line) == [a, b, c, d, e]


def test_nearest_slot_repair_distance_and_ties(line):
    partial = PartialLayout.from_keys([a, b, c, a, d], seed_keys(line), {e: 2})
    # duplicates at slots 0 and 3, two and one units from slot 2
    assert NearestSlotRepair()(partial, line) == [a, b, c, e, d]

    partial = PartialLayout.from_keys([b, a, c, a, d], seed_keys(line), {e: 2})
    # duplicates at slots 1 and 3 are both one unit from slot 2
    assert NearestSlotRepair()(partial, line) == [b, a, c, e, d]


def test_repair_without_duplicates_raises(line):
    partial = PartialLayout([a, b, c, d, d], (e, a), {})
    with pytest.raises(RepairError):
        FirstDuplicateRepair()(partial, line)


def test_repair_checks_result(line):
    config = GenomeConfig.from_hardware(line)
    # a missing list that does not match the keys leaves the child broken
    partial = PartialLayout((a, a, c, d, e), (a,), {})
    with pytest.raises(RepairError):
        repair(partial, config)


def test_unknown_repair_policy(line):
    with pytest.raises(ValueError):
        GenomeConfig.from_hardware(line, repair='nope')
