import json
import sys
from pathlib import Path

import pytest

try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import freqdist as freqdist_module
from freqdist import FreqDist
from hardware import ConfigurationError
from keys import Keycode
from settings import OptimizerSettings


def test_sample_corpus():
    freqdist = FreqDist.from_name('sample')
    assert freqdist.corpus_name == 'sample'
    assert freqdist.count(Keycode.E) > freqdist.count(Keycode.Z) > 0
    assert freqdist.bigram_count(Keycode.T, Keycode.H) > 0
    assert freqdist.total() == sum(freqdist.individual.values()) + sum(freqdist.bigrams.values())


def test_unseen_keys_count_zero():
    freqdist = FreqDist('empty')
    assert freqdist.count(Keycode.A) == 0
    assert freqdist.bigram_count(Keycode.A, Keycode.B) == 0
    assert freqdist.total() == 0


def test_bigrams_are_ordered():
    freqdist = FreqDist('tiny', {}, {(Keycode.A, Keycode.B): 5})
    assert freqdist.bigram_count(Keycode.A, Keycode.B) == 5
    assert freqdist.bigram_count(Keycode.B, Keycode.A) == 0


def test_from_json_skips_unknown_keys(tmp_path, capsys):
    path = tmp_path / 'mine.json'
    path.write_text(json.dumps({
        'individual': {'A': 3, 'LShift': 2, 'Hyper': 9},
        'bigrams': {'A LShift': 4, 'A Hyper': 1, 'A': 7},
    }), encoding='utf-8')

    freqdist = FreqDist.from_json(path)
    assert freqdist.corpus_name == 'mine'
    assert freqdist.individual == {Keycode.A: 3, Keycode.L_SHIFT: 2}
    assert freqdist.bigrams == {(Keycode.A, Keycode.L_SHIFT): 4}
    assert capsys.readouterr().err.count('Ignoring') == 3


def test_missing_corpus():
    with pytest.raises(FileNotFoundError):
        FreqDist.from_name('no_such_corpus')


def test_malformed_corpus(tmp_path):
    path = tmp_path / 'bad.json'
    path.write_text('{not json', encoding='utf-8')
    with pytest.raises(json.JSONDecodeError):
        FreqDist.from_json(path)


@pytest.mark.parametrize('payload', [
    [],
    'individual',
    {'individual': [['A', 3]]},
    {'individual': {'A': 3}, 'bigrams': ['A B']},
])
def test_corpus_must_be_an_object(payload):
    with pytest.raises(ConfigurationError):
        FreqDist.from_dict('bad', payload)


def test_corpus_file_of_the_wrong_shape(tmp_path):
    path = tmp_path / 'list.json'
    path.write_text('[]', encoding='utf-8')
    with pytest.raises(ConfigurationError, match='list'):
        FreqDist.from_json(path)


def test_non_numeric_counts_are_skipped(capsys):
    freqdist = FreqDist.from_dict('odd', {'individual': {'A': [1], 'B': 2}, 'bigrams': {'A B': None}})
    assert freqdist.individual == {Keycode.B: 2}
    assert freqdist.bigrams == {}
    assert capsys.readouterr().err.count('Ignoring') == 2


def test_default_corpus_from_another_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    freqdist = FreqDist.from_name(OptimizerSettings().corpus)
    assert freqdist.total() > 0


def test_corpus_files_are_installed_beside_freqdist():
    with open(PROJECT_ROOT / 'pyproject.toml', 'rb') as fh:
        setuptools_config = tomllib.load(fh)['tool']['setuptools']

    assert 'freqdist' in setuptools_config['py-modules']
    assert 'corpus' in setuptools_config['packages']

    corpus_root = Path(freqdist_module.__file__).resolve().parent / 'corpus'
    shipped = {
        path.name
        for pattern in setuptools_config['package-data']['corpus']
        for path in corpus_root.glob(pattern)
    }
    assert f'{OptimizerSettings().corpus}.json' in shipped
    assert shipped == {path.name for path in corpus_root.glob('*.json')}
