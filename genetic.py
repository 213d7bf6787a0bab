'''
Genetic operators over layouts: random generation, crossover and mutation.

Every operator keeps the layout a permutation of the same fixed set of logical keys.
Crossover works in two phases: a uniform crossover over slots produces a PartialLayout
that may hold some keys twice and miss others, and a RepairPolicy turns it back into a
permutation.
'''

from collections import Counter
from dataclasses import dataclass, field
from functools import cache
from math import dist
from typing import Mapping, Protocol

import numpy as np

from hardware import KeyboardHardware
from keys import LogicalKey
from layout import Layout, seed_keys


class RepairError(RuntimeError):
    """
    A crossover child could not be turned back into a permutation of the seed keys.
    """


@dataclass(frozen=True)
class PartialLayout:
    '''
    The raw output of crossover: keys per slot, possibly with duplicates and holes.

    missing lists the seed keys absent from keys, in seed order. hints maps every
    seed key to the slot it occupied in the parent this child takes after.
    '''
    keys: tuple[LogicalKey, ...]
    missing: tuple[LogicalKey, ...]
    hints: Mapping[LogicalKey, int] = field(default_factory=dict)

    @classmethod
    def from_keys(cls, keys: list[LogicalKey], seed: tuple[LogicalKey, ...], hints: Mapping[LogicalKey, int]) -> 'PartialLayout':
        present = set(keys)
        missing = tuple(key for key in seed if key not in present)
        return cls(tuple(keys), missing, hints)


class RepairPolicy(Protocol):
    def __call__(self, partial: PartialLayout, hardware: KeyboardHardware) -> list[LogicalKey]:
        ...


def _first_duplicate_pair(keys: list[LogicalKey]) -> tuple[int, int] | None:
    '''the lowest (i, j), i < j, such that keys[i] == keys[j]'''
    counts = Counter(keys)
    for i, key in enumerate(keys):
        if counts[key] > 1:
            for j in range(i + 1, len(keys)):
                if keys[j] == key:
                    return (i, j)
    return None


class FirstDuplicateRepair:
    '''
    For every missing key, find the first pair of slots holding the same key and
    overwrite the later one with the missing key.
    '''
    name = 'first_duplicate'

    def __call__(self, partial: PartialLayout, hardware: KeyboardHardware) -> list[LogicalKey]:
        keys = list(partial.keys)
        for missing_key in partial.missing:
            pair = _first_duplicate_pair(keys)
            if pair is None:
                raise RepairError(f"No duplicate key left to replace with {missing_key}")
            keys[pair[1]] = missing_key
        return keys


class NearestSlotRepair:
    '''
    For every missing key, overwrite the duplicate occurrence that is physically nearest
    to where the missing key sat in the parent this child takes after. Ties go to the later slot.
    '''
    name = 'nearest_slot'

    def __call__(self, partial: PartialLayout, hardware: KeyboardHardware) -> list[LogicalKey]:
        keys = list(partial.keys)
        for missing_key in partial.missing:
            counts = Counter(keys)
            duplicates = [i for i, key in enumerate(keys) if counts[key] > 1]
            if not duplicates:
                raise RepairError(f"No duplicate key left to replace with {missing_key}")

            target = partial.hints.get(missing_key)
            if target is None:
                i = _first_duplicate_pair(keys)[1]
            else:
                target_position = hardware.slots[target].position
                i = min(
                    reversed(duplicates),
                    key=lambda s: dist(hardware.slots[s].position, target_position),
                )
            keys[i] = missing_key
        return keys


REPAIR_POLICIES: dict[str, type] = {
    FirstDuplicateRepair.name: FirstDuplicateRepair,
    NearestSlotRepair.name: NearestSlotRepair,
}


@dataclass(frozen=True)
class GenomeConfig:
    '''
    Everything the operators need to know about the search space: the keyboard, the
    fixed set of logical keys that every layout permutes, and how crossover repairs children.
    '''
    hardware: KeyboardHardware
    keys: tuple[LogicalKey, ...]
    repair: RepairPolicy = field(default_factory=FirstDuplicateRepair)

    @classmethod
    def from_hardware(cls, hardware: KeyboardHardware, repair: str = FirstDuplicateRepair.name) -> 'GenomeConfig':
        if repair not in REPAIR_POLICIES:
            raise ValueError(f"Unknown repair policy {repair!r}, expected one of {', '.join(REPAIR_POLICIES)}")
        return cls(hardware, seed_keys(hardware), REPAIR_POLICIES[repair]())


def gen(config: GenomeConfig, rng: np.random.Generator) -> Layout:
    '''
    A uniformly random layout of the seed keys.
    '''
    order = rng.permutation(len(config.keys))
    return Layout(config.hardware, [config.keys[i] for i in order])


def repair(partial: PartialLayout, config: GenomeConfig) -> Layout:
    keys = config.repair(partial, config.hardware)
    if Counter(keys) != Counter(config.keys):
        raise RepairError("Repaired layout is not a permutation of the seed keys")
    return Layout(config.hardware, keys)


def crossover(parent1: Layout, parent2: Layout, config: GenomeConfig, rng: np.random.Generator) -> tuple[Layout, Layout]:
    '''
    Uniform crossover over slots: for each slot a fair coin decides which parent's key
    goes to the first child, the other parent's key goes to the second child. Both
    children are then repaired into permutations.
    '''
    coins = rng.random(len(parent1.keys)) < 0.5

    child1 = []
    child2 = []
    for coin, key1, key2 in zip(coins, parent1.keys, parent2.keys):
        if coin:
            child1.append(key1)
            child2.append(key2)
        else:
            child1.append(key2)
            child2.append(key1)

    return (
        repair(PartialLayout.from_keys(child1, config.keys, parent1.slot_of), config),
        repair(PartialLayout.from_keys(child2, config.keys, parent2.slot_of), config),
    )


@cache
def _swap_pairs(n: int) -> tuple[np.ndarray, np.ndarray]:
    # (0,1), (0,2), ..., (0,n-1), (1,2), ...
    return np.triu_indices(n, k=1)


def mutate(layout: Layout, rate: float, rng: np.random.Generator) -> None:
    '''
    Independently for every pair of slots i < j, swap their keys with probability rate.
    Swaps are applied in place, in pair order.
    '''
    if rate <= 0:
        return

    I, J = _swap_pairs(len(layout.keys))
    for k in np.flatnonzero(rng.random(len(I)) < rate):
        layout.swap(int(I[k]), int(J[k]))
