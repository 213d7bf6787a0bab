'''
One generation of population evolution: rank selection, uniform crossover with repair,
mutation and diversification with fresh random layouts.
'''

import math
from dataclasses import dataclass
from enum import Enum
from itertools import combinations
from typing import Callable

import numpy as np

from genetic import GenomeConfig, crossover, gen, mutate
from layout import Layout

# cap on the number of layout pairs compared to estimate diversity
MAX_DIVERSITY_PAIRS = 500


class DiversifyStrategy(Enum):
    NONE = 'none'
    REPLACE_WORST = 'replace_worst'


@dataclass
class EvolutionParams:
    mutation_rate: float = 0.001
    selection_slope: float = 1.0
    elite_fraction: float = 0.01
    diversify: DiversifyStrategy = DiversifyStrategy.REPLACE_WORST
    diversify_fraction: float = 0.5


@dataclass
class GenerationStats:
    mean: float
    max: float
    min: float
    std_dev: float
    diversity: float

    def __str__(self):
        return (
            f"Mean: {self.mean:.2f}, Max: {self.max:.2f}, Min: {self.min:.2f}, "
            f"Std Dev: {self.std_dev:.2f}, Diversity: {self.diversity:.4f}"
        )


def selection_weights(size: int, slope: float) -> np.ndarray:
    '''
    probability of picking the member at each rank (0 is the best) as a parent
    '''
    ranks = np.arange(size, dtype=np.float64)
    weights = 1.0 / (1.0 + ranks ** slope)
    return weights / weights.sum()


def diversity(population: list[Layout], similarity: Callable[[Layout, Layout], float], rng: np.random.Generator) -> float:
    '''
    1 - mean pairwise similarity, over all pairs or a random sample of MAX_DIVERSITY_PAIRS of them
    '''
    n = len(population)
    if n < 2:
        return 0.0

    if n * (n - 1) // 2 <= MAX_DIVERSITY_PAIRS:
        pairs = list(combinations(range(n), 2))
    else:
        first = rng.integers(0, n, size=MAX_DIVERSITY_PAIRS)
        second = rng.integers(0, n - 1, size=MAX_DIVERSITY_PAIRS)
        second += second >= first
        pairs = list(zip(first.tolist(), second.tolist()))

    return 1.0 - float(np.mean([similarity(population[i], population[j]) for i, j in pairs]))


def evolve(
    population: list[Layout],
    config: GenomeConfig,
    fitness: Callable[[Layout], float],
    similarity: Callable[[Layout, Layout], float],
    params: EvolutionParams,
    rng: np.random.Generator,
) -> tuple[list[Layout], list[float], GenerationStats]:
    '''
    Breed the next generation from population, which is left untouched. The new
    population has the same size, and scores[k] is fitness(new_population[k]).

    The best ceil(elite_fraction * size) members pass unchanged; the rest of the
    population is refilled with mutated children of rank-selected parents. With
    REPLACE_WORST, the worst floor(diversify_fraction * size) non-elite members are
    then replaced by random layouts.
    '''
    size = len(population)
    if size < 2:
        raise ValueError(f"Population needs at least 2 layouts to evolve, got {size}")

    scores = np.array([fitness(layout) for layout in population], dtype=np.float64)
    ranked = np.argsort(-scores, kind='stable')

    elites = min(size, math.ceil(params.elite_fraction * size))
    new_population = [population[k].copy() for k in ranked[:elites]]

    probs = selection_weights(size, params.selection_slope)
    while len(new_population) < size:
        a, b = rng.choice(size, size=2, replace=False, p=probs)
        children = crossover(population[ranked[a]], population[ranked[b]], config, rng)
        for child in children:
            if len(new_population) < size:
                mutate(child, params.mutation_rate, rng)
                new_population.append(child)

    new_scores = [float(scores[k]) for k in ranked[:elites]] + [fitness(layout) for layout in new_population[elites:]]

    if params.diversify is DiversifyStrategy.REPLACE_WORST:
        replace = min(size - elites, math.floor(params.diversify_fraction * size))
        worst = sorted(range(elites, size), key=lambda k: new_scores[k])[:replace]
        for k in worst:
            new_population[k] = gen(config, rng)
            new_scores[k] = fitness(new_population[k])

    values = np.array(new_scores, dtype=np.float64)
    stats = GenerationStats(
        mean=float(values.mean()),
        max=float(values.max()),
        min=float(values.min()),
        std_dev=float(values.std()),
        diversity=diversity(new_population, similarity, rng),
    )
    return new_population, new_scores, stats
