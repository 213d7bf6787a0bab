from __future__ import annotations

import dataclasses
import sys
from pathlib import Path

try:
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - Python < 3.11 fallback
    import tomli as tomllib  # type: ignore[no-redef]

from evolution import DiversifyStrategy
from genetic import REPAIR_POLICIES
from hardware import ConfigurationError
from model import DEFAULT_INTUITION_WEIGHT, TRANSITION_MODELS


# resolved against the working directory
DEFAULT_CONFIG_PATH = Path("config.toml")

DEFAULT_CONFIG = """# keygenetics configuration
keyboard = "split68"
corpus = "sample"
output = "best_layout.txt"

# search
population_size = 1000
# workers = 4   # defaults to one less than the number of cpus
min_temperature = 1e-4
cooling_rate = 0.9999
mutation_rate = 0.001
selection_slope = 1.0
elite_fraction = 0.01
diversify = "replace_worst"
diversify_fraction = 0.5
# seed = 42

# scoring
transition = "synergy"
repair = "first_duplicate"
intuition_weight = 100.0

# logs
log_runs = false
log_generations = true
"""


def _as_bool(data: dict, name: str, default: bool) -> bool:
    value = data.get(name, default)
    if not isinstance(value, bool):
        raise ConfigurationError(f"{name} must be true or false, got {value!r}")
    return value


@dataclasses.dataclass(slots=True, frozen=True)
class OptimizerSettings:
    keyboard: str = "split68"
    corpus: str = "sample"
    output: str = "best_layout.txt"
    population_size: int = 1000
    workers: int | None = None
    min_temperature: float = 1e-4
    cooling_rate: float = 0.9999
    mutation_rate: float = 0.001
    selection_slope: float = 1.0
    elite_fraction: float = 0.01
    diversify: str = DiversifyStrategy.REPLACE_WORST.value
    diversify_fraction: float = 0.5
    transition: str = "synergy"
    repair: str = "first_duplicate"
    intuition_weight: float = DEFAULT_INTUITION_WEIGHT
    log_runs: bool = False
    log_generations: bool = True
    seed: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "OptimizerSettings":
        known = {field.name for field in dataclasses.fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown settings: {', '.join(sorted(unknown))}")

        try:
            workers = data.get("workers")
            seed = data.get("seed")
            settings = cls(
                keyboard=str(data.get("keyboard", "split68")),
                corpus=str(data.get("corpus", "sample")),
                output=str(data.get("output", "best_layout.txt")),
                population_size=int(data.get("population_size", 1000)),
                workers=None if workers is None else int(workers),
                min_temperature=float(data.get("min_temperature", 1e-4)),
                cooling_rate=float(data.get("cooling_rate", 0.9999)),
                mutation_rate=float(data.get("mutation_rate", 0.001)),
                selection_slope=float(data.get("selection_slope", 1.0)),
                elite_fraction=float(data.get("elite_fraction", 0.01)),
                diversify=str(data.get("diversify", DiversifyStrategy.REPLACE_WORST.value)),
                diversify_fraction=float(data.get("diversify_fraction", 0.5)),
                transition=str(data.get("transition", "synergy")),
                repair=str(data.get("repair", "first_duplicate")),
                intuition_weight=float(data.get("intuition_weight", DEFAULT_INTUITION_WEIGHT)),
                log_runs=_as_bool(data, "log_runs", False),
                log_generations=_as_bool(data, "log_generations", True),
                seed=None if seed is None else int(seed),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid settings: {exc}") from exc

        settings.validate()
        return settings

    def validate(self) -> None:
        if self.population_size < 2:
            raise ConfigurationError(f"population_size must be at least 2, got {self.population_size}")
        if self.workers is not None and self.workers < 1:
            raise ConfigurationError(f"workers must be at least 1, got {self.workers}")
        if not 0.0 < self.min_temperature < 1.0:
            raise ConfigurationError(f"min_temperature must be in (0, 1), got {self.min_temperature}")
        if not 0.0 < self.cooling_rate < 1.0:
            raise ConfigurationError(f"cooling_rate must be in (0, 1), got {self.cooling_rate}")
        for name in ("mutation_rate", "elite_fraction", "diversify_fraction"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be in [0, 1], got {value}")
        if self.selection_slope < 0.0:
            raise ConfigurationError(f"selection_slope must not be negative, got {self.selection_slope}")
        if self.intuition_weight < 0.0:
            raise ConfigurationError(f"intuition_weight must not be negative, got {self.intuition_weight}")
        if self.diversify not in {strategy.value for strategy in DiversifyStrategy}:
            raise ConfigurationError(
                f"Unknown diversify strategy {self.diversify!r}, expected one of {', '.join(s.value for s in DiversifyStrategy)}"
            )
        if self.transition not in TRANSITION_MODELS:
            raise ConfigurationError(f"Unknown transition model {self.transition!r}, expected one of {', '.join(TRANSITION_MODELS)}")
        if self.repair not in REPAIR_POLICIES:
            raise ConfigurationError(f"Unknown repair policy {self.repair!r}, expected one of {', '.join(REPAIR_POLICIES)}")


def load_settings(config_path: Path) -> OptimizerSettings:
    '''
    Read settings from config_path, writing the default config there first if the file
    does not exist.
    '''
    config_path = Path(config_path)
    if not config_path.exists():
        print(
            f"warning: config file not found at {config_path}, creating default config",
            file=sys.stderr,
        )
        try:
            config_path.write_text(DEFAULT_CONFIG, encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(f"failed to create config {config_path}: {exc}") from exc

    try:
        with config_path.open("rb") as fh:
            data = tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigurationError(f"failed to read config {config_path}: {exc}") from exc

    return OptimizerSettings.from_dict(data)
