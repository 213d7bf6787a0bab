import math
from dataclasses import dataclass
from typing import Any

import numpy as np

from keys import LogicalKey
from layout import Layout
from model import KeyboardModel

# random numbers are drawn in blocks of this size
DRAW_BLOCK = 4096


@dataclass
class AnnealingParams:
    '''
    Cooling schedule: the temperature starts at initial_temperature, is multiplied by
    cooling_rate after every proposed swap, and the walk ends once it drops below
    min_temperature.
    '''
    initial_temperature: float = 1.0
    min_temperature: float = 1e-4
    cooling_rate: float = 0.9999

    def iterations(self) -> int:
        '''number of swaps proposed by one walk'''
        if self.initial_temperature < self.min_temperature:
            return 0
        return math.floor(math.log(self.min_temperature / self.initial_temperature) / math.log(self.cooling_rate)) + 1


@dataclass
class AnnealingStats:
    initial_score: float = 0.0
    best_score: float = 0.0
    swaps_considered: int = 0
    improving_swaps_accepted: int = 0
    worsening_swaps_accepted: int = 0
    worsening_swaps_rejected: int = 0

    def __str__(self):
        return "\n".join([
            f"-- Annealing stats: --",
            f"Initial score: {self.initial_score:.1f}",
            f"Best score: {self.best_score:.1f}",
            f"Swaps considered: {self.swaps_considered}",
            f"Improving swaps accepted: {self.improving_swaps_accepted}",
            f"Worsening swaps accepted: {self.worsening_swaps_accepted}",
            f"Worsening swaps rejected: {self.worsening_swaps_rejected}",
        ])


def _swap_draws(rng: np.random.Generator, n: int, size: int) -> tuple[list[int], list[int], list[float]]:
    '''pairs of distinct slots picked uniformly at random, and a uniform draw for the acceptance test'''
    first = rng.integers(0, n, size=size)
    second = rng.integers(0, n - 1, size=size)
    second += second >= first
    return first.tolist(), second.tolist(), rng.random(size).tolist()


def anneal(
    layout: Layout,
    model: KeyboardModel,
    params: AnnealingParams,
    rng: np.random.Generator,
) -> tuple[Layout, AnnealingStats]:
    '''
    Simulated annealing from layout, returning the best layout seen on the walk (which is
    not necessarily where the walk ends). The input layout is not modified.

    Every step proposes swapping two random slots. A swap that raises the score is always
    taken, one that lowers it by delta is taken with probability
    exp((delta / max_possible_score) / temperature).
    '''
    current = layout.copy()
    current_score = model.score(current)
    best = current.copy()
    best_score = current_score

    stats = AnnealingStats(initial_score=current_score)

    n = len(current.keys)
    if n < 2:
        stats.best_score = best_score
        return best, stats

    scale = model.max_possible_score() or 1.0
    temperature = params.initial_temperature

    while temperature >= params.min_temperature:
        first, second, uniform = _swap_draws(rng, n, DRAW_BLOCK)

        for i, j, u in zip(first, second, uniform):
            if temperature < params.min_temperature:
                break

            delta = model.swap_delta(current, i, j)
            stats.swaps_considered += 1

            if delta > 0:
                accept = True
                stats.improving_swaps_accepted += 1
            elif u < math.exp((delta / scale) / temperature):
                accept = True
                stats.worsening_swaps_accepted += 1
            else:
                accept = False
                stats.worsening_swaps_rejected += 1

            if accept:
                current.swap(i, j)
                current_score += delta
                if current_score > best_score:
                    best = current.copy()
                    best_score = current_score

            temperature *= params.cooling_rate

    stats.best_score = model.score(best)
    return best, stats


def anneal_batch_worker(args):
    return anneal_batch(*args)


def anneal_batch(
    keys_list: list[tuple[LogicalKey, ...]],
    model: KeyboardModel,
    params: AnnealingParams,
    seed: np.random.SeedSequence,
    progress_queue: Any,
) -> list[tuple[tuple[LogicalKey, ...], AnnealingStats]]:
    '''
    anneal every layout in keys_list independently

    this function is set up for multiprocessing, so all the inputs are considered immutable,
    and the only outputs are returned to the caller. Layouts travel as tuples of keys.
    '''
    rng = np.random.default_rng(seed)
    results = []
    for keys in keys_list:
        best, stats = anneal(Layout(model.hardware, keys), model, params, rng)
        results.append((tuple(best.keys), stats))
        if progress_queue is not None:
            progress_queue.put(1)
    return results
