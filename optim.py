import os
import math
import queue
import signal
import threading
from pathlib import Path

import multiprocessing
import numpy as np
from tqdm import tqdm

from annealing import AnnealingParams, AnnealingStats, anneal_batch, anneal_batch_worker
from evolution import DiversifyStrategy, EvolutionParams, GenerationStats, evolve
from freqdist import FreqDist
from genetic import GenomeConfig, gen
from hardware import ConfigurationError, KeyboardHardware
from keys import LogicalKey
from layout import Layout
from logger import LOGS_DIR, OptimizerLogger
from model import KeyboardModel


def default_workers() -> int:
    '''leave one cpu free for interactive use'''
    return max(1, (os.cpu_count() or 1) - 1)


def _ignore_interrupts() -> None:
    # workers finish their batch; the main process decides when to stop
    signal.signal(signal.SIGINT, signal.SIG_IGN)


class _InlineProgress:
    '''
    stands in for the manager queue when annealing runs in this process
    '''
    def __init__(self, pbar: tqdm):
        self.pbar = pbar

    def put(self, n: int) -> None:
        self.pbar.update(n)


class Optimizer:
    '''
    The hybrid search: every generation anneals each member of the population in a pool of
    worker processes, evolves the annealed population one generation, and saves the best
    layout found to output.

    Handles multiprocessing, logging, and persistence.
    '''
    def __init__(
        self,
        model: KeyboardModel,
        config: GenomeConfig,
        population_size: int = 1000,
        workers: int | None = None,
        annealing: AnnealingParams | None = None,
        evolution: EvolutionParams | None = None,
        output: str | Path = "best_layout.txt",
        seed: int | None = None,
        log_generations: bool = True,
        log_runs: bool = False,
        logs_dir: str = LOGS_DIR,
        progress: bool = True,
    ):
        if config.hardware is not model.hardware:
            raise ValueError("The model and the genome config must describe the same keyboard")
        if population_size < 2:
            raise ValueError(f"population_size must be at least 2, got {population_size}")

        self.model = model
        self.config = config
        self.population_size = population_size
        self.workers = workers or default_workers()
        self.annealing = annealing or AnnealingParams()
        self.evolution = evolution or EvolutionParams()
        self.output = Path(output)
        self.progress = progress

        self.seed_sequence = np.random.SeedSequence(seed)
        self.rng = np.random.default_rng(self.seed_sequence.spawn(1)[0])

        self.logger = OptimizerLogger(
            f"{model.hardware.name}_{model.freqdist.corpus_name}",
            log_generations=log_generations,
            log_runs=log_runs,
            logs_dir=logs_dir,
        )

        self.generation = 0
        self.population: list[Layout] = [gen(config, self.rng) for _ in range(population_size)]
        self.scores: list[float] = []
        self.stats: GenerationStats | None = None
        self.best: Layout | None = None
        self.best_score = -math.inf

    @classmethod
    def from_settings(cls, settings, progress: bool = True) -> 'Optimizer':
        '''
        build the keyboard, frequencies, model and optimizer described by an OptimizerSettings
        '''
        hardware = KeyboardHardware.from_name(settings.keyboard)
        freqdist = FreqDist.from_name(settings.corpus)
        model = KeyboardModel(
            hardware,
            freqdist,
            transition=settings.transition,
            intuition_weight=settings.intuition_weight,
        )
        try:
            config = GenomeConfig.from_hardware(hardware, settings.repair)
            diversify = DiversifyStrategy(settings.diversify)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

        return cls(
            model,
            config,
            population_size=settings.population_size,
            workers=settings.workers,
            annealing=AnnealingParams(
                min_temperature=settings.min_temperature,
                cooling_rate=settings.cooling_rate,
            ),
            evolution=EvolutionParams(
                mutation_rate=settings.mutation_rate,
                selection_slope=settings.selection_slope,
                elite_fraction=settings.elite_fraction,
                diversify=diversify,
                diversify_fraction=settings.diversify_fraction,
            ),
            output=settings.output,
            seed=settings.seed,
            log_generations=settings.log_generations,
            log_runs=settings.log_runs,
            progress=progress,
        )

    def _batches(self) -> list[list[tuple[LogicalKey, ...]]]:
        keys = [tuple(layout.keys) for layout in self.population]
        batch_size = math.ceil(len(keys) / self.workers)
        return [keys[i:i + batch_size] for i in range(0, len(keys), batch_size)]

    def anneal_population(self, pool=None, progress_queue=None) -> list[tuple[Layout, AnnealingStats]]:
        '''
        anneal every member of the population independently, in the pool if given,
        otherwise in this process. Returns the annealed layouts in population order.
        '''
        batches = self._batches()
        seeds = self.seed_sequence.spawn(len(batches))
        total_jobs = len(self.population)

        with tqdm(total=total_jobs, desc=f"Annealing {self.generation + 1}", disable=not self.progress, leave=False) as pbar:
            if pool is None:
                inline = _InlineProgress(pbar)
                results = [
                    anneal_batch(batch, self.model, self.annealing, seed, inline)
                    for batch, seed in zip(batches, seeds)
                ]
            else:
                tasks = [
                    (batch, self.model, self.annealing, seed, progress_queue)
                    for batch, seed in zip(batches, seeds)
                ]
                results_async = pool.map_async(anneal_batch_worker, tasks)

                while not results_async.ready():
                    try:
                        # Check for progress updates without blocking
                        if pbar.n < total_jobs:
                            progress_queue.get(timeout=0.1)
                            pbar.update(1)
                        else:
                            results_async.wait(timeout=0.1)
                    except queue.Empty:
                        # timeout on get, continue loop
                        pass

                # update with any remaining items in the queue
                while not progress_queue.empty():
                    try:
                        progress_queue.get_nowait()
                        pbar.update(1)
                    except queue.Empty:
                        break

                results = results_async.get()

        return [
            (Layout(self.config.hardware, keys), stats)
            for batch_results in results
            for keys, stats in batch_results
        ]

    def step(self, pool=None, progress_queue=None) -> GenerationStats:
        '''
        one generation: anneal, evolve, persist the best layout, report
        '''
        self.logger.generation_start()

        annealed = self.anneal_population(pool, progress_queue)
        for seed_id, (_, stats) in enumerate(annealed):
            self.logger.run(self.generation, seed_id, stats.initial_score, stats.best_score)

        self.population, self.scores, self.stats = evolve(
            [layout for layout, _ in annealed],
            self.config,
            self.model.score,
            Layout.similarity,
            self.evolution,
            self.rng,
        )
        self.generation += 1

        top = int(np.argmax(self.scores))
        self.best = self.population[top].copy()
        self.best_score = self.scores[top]
        self.best.save(self.output)

        print(f"Generation: {self.generation}, {self.stats}")
        self.logger.generation_end(self.generation, self.stats, self.best_score)
        self.logger.save()
        return self.stats

    def run(self, generations: int | None = None, stop_event: threading.Event | None = None) -> Layout | None:
        '''
        Run generations, or forever if generations is None. stop_event, when set, ends the
        run before the next generation starts. Returns the best layout of the last generation.
        '''
        print(f"Max Possible Score: {self.model.max_possible_score():.2f}")

        def should_continue(done: int) -> bool:
            if stop_event is not None and stop_event.is_set():
                return False
            return generations is None or done < generations

        done = 0
        if self.workers == 1:
            while should_continue(done):
                self.step()
                done += 1
            return self.best

        with multiprocessing.Manager() as manager, multiprocessing.Pool(processes=self.workers, initializer=_ignore_interrupts) as pool:
            progress_queue = manager.Queue()
            while should_continue(done):
                self.step(pool, progress_queue)
                done += 1

        return self.best
