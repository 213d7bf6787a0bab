import os
import csv
import time
import fcntl


# relative to the working directory the optimizer is started from
LOGS_DIR = "logs"


class OptimizerLogger:
    '''
    A logger for one optimizer run. Keeps per-generation stats and per-candidate annealing
    runs in memory and appends them to tab separated files in logs_dir on save().
    '''
    def __init__(self, run_name: str, log_generations: bool = True, log_runs: bool = False, logs_dir: str = LOGS_DIR):
        self.run_name = run_name
        self.log_generations = log_generations
        self.log_runs = log_runs
        self.logs_dir = logs_dir

        self.generations_filename = f"{self.run_name}_generations.tsv"
        self.runs_filename = f"{self.run_name}_runs.tsv"

        self.generations = []
        self.runs = []
        self.start_time = time.time()

    def generation_start(self) -> None:
        self.start_time = time.time()

    def generation_end(self, generation: int, stats, best_score: float) -> None:
        duration = time.time() - self.start_time
        if not self.log_generations:
            return
        self.generations.append(
            (generation, stats.mean, stats.max, stats.min, stats.std_dev, stats.diversity, best_score, duration)
        )

    def run(self, generation: int, seed_id: int, initial_score: float, final_score: float) -> None:
        if not self.log_runs:
            return
        self.runs.append((generation, seed_id, initial_score, final_score))

    def save(self) -> None:
        if not self.generations and not self.runs:
            return

        os.makedirs(self.logs_dir, exist_ok=True)

        for file_path, header, rows in (
            (
                os.path.join(self.logs_dir, self.generations_filename),
                ["generation", "mean", "max", "min", "std_dev", "diversity", "best_score", "duration"],
                self.generations,
            ),
            (
                os.path.join(self.logs_dir, self.runs_filename),
                ["generation", "seed_id", "initial_score", "final_score"],
                self.runs,
            ),
        ):
            if not rows:
                continue

            file_exists = os.path.exists(file_path)
            with open(file_path, "a+", newline='') as f:
                # several processes may append to the same log file
                fcntl.flock(f, fcntl.LOCK_EX)
                writer = csv.writer(f, delimiter='\t')
                if not file_exists:
                    writer.writerow(header)
                writer.writerows(rows)
                fcntl.flock(f, fcntl.LOCK_UN)

        self.generations = []
        self.runs = []
