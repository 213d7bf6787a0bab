import sys
import threading
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from annealing import AnnealingParams
from evolution import DiversifyStrategy, EvolutionParams
from freqdist import FreqDist
from genetic import GenomeConfig, NearestSlotRepair
from hardware import KeyboardHardware
from keys import Keycode
from model import KeyboardModel
from optim import Optimizer
from settings import OptimizerSettings

FAST = AnnealingParams(min_temperature=0.05, cooling_rate=0.97)

ROWS = [
    [('Q', 'LP', 75), ('W', 'LR', 75), ('E', 'LM', 75), ('R', 'LI', 75), None, ('U', 'RI', 75), ('I', 'RM', 75)],
    [('A', 'LP', 100), ('S', 'LR', 100), ('D', 'LM', 100), ('F', 'LI', 100), None, ('J', 'RI', 100), ('K', 'RM', 100)],
]


@pytest.fixture
def model():
    hardware = KeyboardHardware.from_rows(
        'tiny',
        {'LP': 70, 'LR': 50, 'LM': 80, 'LI': 100, 'RI': 100, 'RM': 80},
        ROWS,
    )
    freqdist = FreqDist(
        'tiny',
        {Keycode.E: 100, Keycode.A: 80, Keycode.S: 60, Keycode.R: 50, Keycode.I: 40, Keycode.D: 5, Keycode.Q: 1},
        {(Keycode.E, Keycode.R): 30, (Keycode.A, Keycode.S): 20, (Keycode.I, Keycode.S): 10},
    )
    return KeyboardModel(hardware, freqdist, intuitions=())


def _optimizer(model, tmp_path, **kwargs):
    options = dict(
        population_size=8,
        workers=1,
        annealing=FAST,
        evolution=EvolutionParams(mutation_rate=0.05, elite_fraction=0.25),
        output=tmp_path / 'best.txt',
        seed=42,
        logs_dir=str(tmp_path / 'logs'),
        progress=False,
    )
    options.update(kwargs)
    return Optimizer(model, GenomeConfig.from_hardware(model.hardware), **options)


def test_initial_population(model, tmp_path):
    optimizer = _optimizer(model, tmp_path)
    assert len(optimizer.population) == 8
    assert all(layout.is_permutation_of(optimizer.config.keys) for layout in optimizer.population)
    assert optimizer.best is None


def test_run_in_process(model, tmp_path, capsys):
    optimizer = _optimizer(model, tmp_path)
    best = optimizer.run(generations=2)

    assert optimizer.generation == 2
    assert best is optimizer.best
    assert best.is_permutation_of(optimizer.config.keys)
    assert optimizer.best_score == pytest.approx(model.score(best))
    assert optimizer.best_score == pytest.approx(max(optimizer.scores))
    assert len(optimizer.population) == 8

    saved = (tmp_path / 'best.txt').read_text()
    assert saved == str(best) + '\n'

    out = capsys.readouterr().out
    assert 'Max Possible Score' in out
    assert 'Generation: 1, Mean:' in out
    assert 'Generation: 2, Mean:' in out

    log_lines = (tmp_path / 'logs' / 'tiny_tiny_generations.tsv').read_text().splitlines()
    assert log_lines[0].split('\t') == ['generation', 'mean', 'max', 'min', 'std_dev', 'diversity', 'best_score', 'duration']
    assert len(log_lines) == 3


def test_run_logs_annealing_runs(model, tmp_path):
    optimizer = _optimizer(model, tmp_path, log_runs=True, log_generations=False)
    optimizer.run(generations=1)

    log_lines = (tmp_path / 'logs' / 'tiny_tiny_runs.tsv').read_text().splitlines()
    assert log_lines[0].split('\t') == ['generation', 'seed_id', 'initial_score', 'final_score']
    assert len(log_lines) == 9
    for line in log_lines[1:]:
        _, _, initial, final = line.split('\t')
        assert float(final) >= float(initial) - 1e-9
    assert not (tmp_path / 'logs' / 'tiny_tiny_generations.tsv').exists()


def test_run_with_worker_pool(model, tmp_path):
    optimizer = _optimizer(model, tmp_path, workers=2)
    best = optimizer.run(generations=1)
    assert optimizer.generation == 1
    assert best.hardware is model.hardware
    assert best.is_permutation_of(optimizer.config.keys)
    assert (tmp_path / 'best.txt').exists()


def test_same_seed_same_run(model, tmp_path):
    first = _optimizer(model, tmp_path / 'a', seed=7)
    second = _optimizer(model, tmp_path / 'b', seed=7)
    (tmp_path / 'a').mkdir()
    (tmp_path / 'b').mkdir()
    assert first.run(generations=2).keys == second.run(generations=2).keys


def test_stop_before_start(model, tmp_path):
    optimizer = _optimizer(model, tmp_path)
    stop_event = threading.Event()
    stop_event.set()
    assert optimizer.run(stop_event=stop_event) is None
    assert optimizer.generation == 0
    assert not (tmp_path / 'best.txt').exists()


def test_stop_between_generations(model, tmp_path):
    stop_event = threading.Event()

    class StopAfterTwo(Optimizer):
        def step(self, pool=None, progress_queue=None):
            stats = super().step(pool, progress_queue)
            if self.generation == 2:
                stop_event.set()
            return stats

    optimizer = StopAfterTwo(
        model,
        GenomeConfig.from_hardware(model.hardware),
        population_size=6,
        workers=1,
        annealing=FAST,
        output=tmp_path / 'best.txt',
        seed=3,
        log_generations=False,
        progress=False,
    )
    optimizer.run(generations=None, stop_event=stop_event)
    assert optimizer.generation == 2


def test_hardware_mismatch(model, tmp_path):
    other = KeyboardHardware.from_rows('tiny', {'LP': 70, 'LR': 50, 'LM': 80, 'LI': 100, 'RI': 100, 'RM': 80}, ROWS)
    with pytest.raises(ValueError):
        Optimizer(model, GenomeConfig.from_hardware(other), population_size=4, progress=False)


def test_from_settings():
    settings = OptimizerSettings(
        population_size=4,
        workers=1,
        min_temperature=0.5,
        cooling_rate=0.9,
        repair='nearest_slot',
        diversify='none',
        transition='distance',
        seed=1,
    )
    optimizer = Optimizer.from_settings(settings, progress=False)
    assert optimizer.model.hardware.name == 'split68'
    assert optimizer.model.transition == 'distance'
    assert isinstance(optimizer.config.repair, NearestSlotRepair)
    assert optimizer.evolution.diversify is DiversifyStrategy.NONE
    assert optimizer.annealing.cooling_rate == 0.9
    assert optimizer.workers == 1
    assert len(optimizer.population) == 4
