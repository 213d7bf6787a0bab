'''
The scoring model. Higher scores are better:

    score = individual + bigram + intuition_weight * intuitions

- individual: every key's frequency, weighted by how easy its slot is to reach and how
  capable the finger pressing it is.
- bigram: the frequency of each pair of keys sitting in consecutive slots, weighted by how
  comfortable the transition between those slots is.
- intuitions: the number of hand written ergonomic rules the layout satisfies.
'''

import sys
from math import dist
from typing import Callable, Iterable

import numpy as np

from freqdist import FreqDist
from hardware import ConfigurationError, Finger, FingerType, KeyboardHardware
from intuitions import INTUITIONS, Intuition, keys_of, satisfied
from keys import LogicalKey, keycode
from layout import Layout, seed_keys

P, R, M, I, T = FingerType.PINKY, FingerType.RING, FingerType.MIDDLE, FingerType.INDEX, FingerType.THUMB

# how much distance matters when moving between two fingers of the same hand
DISTANCE_IMPORTANCE: dict[frozenset[FingerType], float] = {
    frozenset((P, P)): 1.0,
    frozenset((P, R)): 0.9,
    frozenset((P, M)): 0.8,
    frozenset((P, I)): 0.2,
    frozenset((P, T)): 0.1,
    frozenset((R, R)): 1.0,
    frozenset((R, M)): 0.9,
    frozenset((R, I)): 0.5,
    frozenset((R, T)): 0.1,
    frozenset((M, M)): 1.0,
    frozenset((M, I)): 0.7,
    frozenset((M, T)): 0.1,
    frozenset((I, I)): 1.0,
    frozenset((I, T)): 0.2,
    frozenset((T, T)): 1.0,
}

# how well two fingers of the same hand work in sequence, regardless of distance
SYNERGY: dict[frozenset[FingerType], float] = {
    frozenset((P, P)): 0.1,
    frozenset((P, R)): 0.3,
    frozenset((P, M)): 0.5,
    frozenset((P, I)): 0.7,
    frozenset((P, T)): 0.6,
    frozenset((R, R)): 0.1,
    frozenset((R, M)): 0.4,
    frozenset((R, I)): 0.7,
    frozenset((R, T)): 0.6,
    frozenset((M, M)): 0.1,
    frozenset((M, I)): 0.8,
    frozenset((M, T)): 0.7,
    frozenset((I, I)): 0.1,
    frozenset((I, T)): 0.9,
    frozenset((T, T)): 0.1,
}

DEFAULT_INTUITION_WEIGHT = 100.0


def distance_score(f1: Finger, f2: Finger, distance: float) -> float:
    w = DISTANCE_IMPORTANCE[frozenset((f1.type, f2.type))]
    return (1.0 - w) + w / (distance + 1.0)


def transition_cost(f1: Finger, f2: Finger, distance: float) -> float:
    '''
    The comfort of moving from a key pressed by f1 to a key pressed by f2, `distance` apart.
    Repeating a key or alternating hands is always 1.0.
    '''
    if distance == 0.0 or f1.hand != f2.hand:
        return 1.0
    return distance_score(f1, f2, distance) * SYNERGY[frozenset((f1.type, f2.type))]


def distance_transition_cost(f1: Finger, f2: Finger, distance: float) -> float:
    '''
    The older model, without finger synergy.
    '''
    if distance == 0.0 or f1.hand != f2.hand:
        return 1.0
    return distance_score(f1, f2, distance)


TRANSITION_MODELS: dict[str, Callable[[Finger, Finger, float], float]] = {
    'synergy': transition_cost,
    'distance': distance_transition_cost,
}


class KeyboardModel:
    """
    Scores layouts of one keyboard against one set of key frequencies.

    Everything that depends only on the hardware is computed once:
    the per-slot reach weight (slot score * finger score) and the per-pair transition
    cost between consecutive slots.
    """

    def __init__(
        self,
        hardware: KeyboardHardware,
        freqdist: FreqDist,
        intuitions: Iterable[Intuition] = INTUITIONS,
        transition: str = 'synergy',
        intuition_weight: float = DEFAULT_INTUITION_WEIGHT,
    ):
        if transition not in TRANSITION_MODELS:
            raise ConfigurationError(f"Unknown transition model {transition!r}, expected one of {', '.join(TRANSITION_MODELS)}")

        self.hardware = hardware
        self.freqdist = freqdist
        self.transition = transition
        self.intuition_weight = intuition_weight
        self.seed = seed_keys(hardware)

        slots = hardware.slots
        for slot in slots:
            if slot.finger not in hardware.finger_scores:
                raise ConfigurationError(f"Key {slot.code.value} uses finger {slot.finger.name} which has no finger score")

        cost = TRANSITION_MODELS[transition]

        # slot i weight, and cost of the transition slot i -> slot i+1 (keyed off slot i's finger)
        self.slot_weights = np.array([slot.score * hardware.finger_scores[slot.finger] for slot in slots], dtype=np.float64)
        self.pair_costs = np.array(
            [cost(slots[i].finger, slots[i].finger, dist(slots[i].position, slots[i + 1].position)) for i in range(len(slots) - 1)],
            dtype=np.float64,
        )
        # list copies for the single-entry lookups in swap_delta
        self._weights = self.slot_weights.tolist()
        self._costs = self.pair_costs.tolist()

        # bridge logical keys to the raw keycodes counted in the frequency tables
        key_at_code = {keycode(key): key for key in self.seed}
        self.counts: dict[LogicalKey, int] = {key: freqdist.count(keycode(key)) for key in self.seed}
        self.bigram_counts: dict[tuple[LogicalKey, LogicalKey], int] = {
            (key_at_code[first], key_at_code[second]): count
            for (first, second), count in freqdist.bigrams.items()
            if first in key_at_code and second in key_at_code
        }

        seed_set = set(self.seed)
        self.intuitions: list[Intuition] = []
        for intuition in intuitions:
            if keys_of(intuition) <= seed_set:
                self.intuitions.append(intuition)
            else:
                print(f"Warning: intuition {intuition} uses keys that {hardware.name} does not have. Ignoring.", file=sys.stderr)

        self._intuitions_at_key: dict[LogicalKey, list[int]] = {key: [] for key in self.seed}
        for idx, intuition in enumerate(self.intuitions):
            for key in keys_of(intuition):
                self._intuitions_at_key[key].append(idx)

    def individual_score(self, layout: Layout) -> float:
        counts = np.fromiter((self.counts.get(key, 0) for key in layout.keys), dtype=np.float64, count=len(layout.keys))
        return float(np.dot(counts, self.slot_weights))

    def bigram_score(self, layout: Layout) -> float:
        keys = layout.keys
        bigram_counts = self.bigram_counts
        counts = np.fromiter(
            (bigram_counts.get((keys[i], keys[i + 1]), 0) for i in range(len(self.pair_costs))),
            dtype=np.float64,
            count=len(self.pair_costs),
        )
        return float(np.dot(counts, self.pair_costs))

    def intuition_score(self, layout: Layout) -> int:
        return sum(1 for intuition in self.intuitions if satisfied(intuition, layout))

    def score(self, layout: Layout) -> float:
        return self.individual_score(layout) + self.bigram_score(layout) + self.intuition_weight * self.intuition_score(layout)

    __call__ = score

    def score_contributions(self, layout: Layout) -> dict[str, float]:
        '''
        The three components of score(layout), the intuition one already weighted.
        '''
        return {
            'individual': self.individual_score(layout),
            'bigram': self.bigram_score(layout),
            'intuition': self.intuition_weight * self.intuition_score(layout),
        }

    def max_possible_score(self) -> float:
        '''
        An upper bound of the score, used to normalize score differences.
        '''
        return float(self.freqdist.total()) + self.intuition_weight * len(self.intuitions)

    def _local_score(self, layout: Layout, i: int, j: int, pairs: list[int], intuition_idxs: set[int]) -> float:
        keys = layout.keys
        counts = self.counts
        bigram_counts = self.bigram_counts

        score = counts.get(keys[i], 0) * self._weights[i] + counts.get(keys[j], 0) * self._weights[j]
        for p in pairs:
            score += bigram_counts.get((keys[p], keys[p + 1]), 0) * self._costs[p]
        for idx in intuition_idxs:
            if satisfied(self.intuitions[idx], layout):
                score += self.intuition_weight
        return score

    def swap_delta(self, layout: Layout, i: int, j: int) -> float:
        '''
        score(layout with slots i and j swapped) - score(layout), rescoring only the
        slots, consecutive pairs and intuitions that the swap touches. layout is unchanged.
        '''
        if i == j:
            return 0.0

        last_pair = len(layout.keys) - 2
        pairs = sorted({p for p in (i - 1, i, j - 1, j) if 0 <= p <= last_pair})
        intuition_idxs = set(self._intuitions_at_key.get(layout.keys[i], ())) | set(self._intuitions_at_key.get(layout.keys[j], ()))

        before = self._local_score(layout, i, j, pairs, intuition_idxs)
        layout.swap(i, j)
        try:
            after = self._local_score(layout, i, j, pairs, intuition_idxs)
        finally:
            layout.swap(i, j)

        return after - before
