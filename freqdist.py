"""Key usage frequency tables, as aggregated from a key log."""

from __future__ import annotations

import json
import sys
from pathlib import Path

from hardware import ConfigurationError
from keys import Keycode


class FreqDist:
    '''
    Read-only counts of how often each key was pressed, and how often each ordered pair
    of keys was pressed consecutively. Unseen keys and pairs count as 0.
    '''
    def __init__(
        self,
        corpus_name: str,
        individual: dict[Keycode, int] | None = None,
        bigrams: dict[tuple[Keycode, Keycode], int] | None = None,
    ):
        self.corpus_name = corpus_name
        self.individual = dict(individual or {})
        self.bigrams = dict(bigrams or {})

    def count(self, code: Keycode) -> int:
        return self.individual.get(code, 0)

    def bigram_count(self, first: Keycode, second: Keycode) -> int:
        return self.bigrams.get((first, second), 0)

    def total(self) -> int:
        '''Sum of every individual and every bigram count.'''
        return sum(self.individual.values()) + sum(self.bigrams.values())

    def __repr__(self) -> str:
        return f"FreqDist({self.corpus_name!r}, {len(self.individual)} keys, {len(self.bigrams)} bigrams)"

    @classmethod
    def from_dict(cls, corpus_name: str, payload) -> FreqDist:
        """Build the frequency tables from a decoded JSON payload.

        Parameters
        ----------
        corpus_name:
            Name used in reports.
        payload:
            ``{"individual": {"A": 10, ...}, "bigrams": {"A B": 5, ...}}`` where keys are
            logged keycode names, and bigram keys are two names separated by a space.

        Unknown key names are skipped with a warning.

        Raises
        ------
        ConfigurationError
            If the payload or either of its tables is not a JSON object.
        """
        if not isinstance(payload, dict):
            raise ConfigurationError(f"Corpus {corpus_name} must be a JSON object, got {type(payload).__name__}")
        tables = {}
        for table in ("individual", "bigrams"):
            tables[table] = payload.get(table, {})
            if not isinstance(tables[table], dict):
                raise ConfigurationError(
                    f"Corpus {corpus_name}: '{table}' must be a JSON object, got {type(tables[table]).__name__}"
                )

        individual: dict[Keycode, int] = {}
        for name, count in tables["individual"].items():
            try:
                individual[Keycode.from_name(name)] = int(count)
            except (TypeError, ValueError):
                print(f"Warning: unknown key '{name}' in {corpus_name}. Ignoring.", file=sys.stderr)

        bigrams: dict[tuple[Keycode, Keycode], int] = {}
        for names, count in tables["bigrams"].items():
            try:
                first, second = names.split()
                bigrams[(Keycode.from_name(first), Keycode.from_name(second))] = int(count)
            except (TypeError, ValueError):
                print(f"Warning: invalid bigram '{names}' in {corpus_name}. Ignoring.", file=sys.stderr)

        return cls(corpus_name, individual, bigrams)

    @classmethod
    def from_json(cls, path: str | Path) -> FreqDist:
        """Load the frequency tables from a JSON file.

        Raises
        ------
        FileNotFoundError
            If the file does not exist.
        json.JSONDecodeError
            If the file is malformed.
        ConfigurationError
            If the file is valid JSON but not a corpus.
        """
        path = Path(path)
        with path.open("r", encoding="utf-8") as fp:
            return cls.from_dict(path.stem, json.load(fp))

    @classmethod
    def from_name(cls, name: str) -> FreqDist:
        """Load the frequency tables for the corpus ``corpus/<name>.json`` shipped beside this module."""
        corpus_root = Path(__file__).resolve().parent / "corpus"
        return cls.from_json(corpus_root / f"{name}.json")
