import logging
from pathlib import Path

import pytest
from colorama import Fore
from omegaconf import OmegaConf

from lhrtree.builder import BuilderConfig
from lhrtree.utility.logger import ColorFormatter, TqdmLoggingHandler, get_logger_func, setup_logger

CONFIG_DIR = Path(__file__).parent.parent / 'config'


def test_defaults():
    cfg = BuilderConfig()
    assert (cfg.max_beam_size, cfg.max_fork_size, cfg.max_iterations) == (10, 5, 10)
    assert cfg.deprel_score_threshold == 0.5
    assert cfg.single_root


def test_build():
    cfg = BuilderConfig.build({'max_beam_size': 3, 'single_root': False})
    assert cfg.max_beam_size == 3
    assert not cfg.single_root
    assert cfg['max_fork_size'] == 5
    assert BuilderConfig.build(OmegaConf.create({'max_iterations': 2})).max_iterations == 2
    assert BuilderConfig.build(cfg) is cfg


def test_build_rejects_unknown_keys():
    with pytest.raises(ValueError):
        BuilderConfig.build({'beam_size': 3})

    cfg, unknown = BuilderConfig.build({'beam_size': 3}, ignore_unknown=True)
    assert unknown == {'beam_size': 3}
    assert cfg == BuilderConfig()


def test_bad_sizes():
    with pytest.raises(ValueError):
        BuilderConfig(max_fork_size=0)
    with pytest.raises(ValueError):
        BuilderConfig(max_iterations=-1)


def test_load(tmp_path):
    assert BuilderConfig.load(CONFIG_DIR / 'builder.yaml') == BuilderConfig()

    path = tmp_path / 'builder.yaml'
    path.write_text('max_beam_size: 2\n')
    assert BuilderConfig.load(path) == BuilderConfig(max_beam_size=2)


def test_logger(caplog):
    log = setup_logger(logging.DEBUG, name='lhrtree.test')
    assert sum(isinstance(h, TqdmLoggingHandler) for h in log.handlers) == 1
    setup_logger(logging.DEBUG, name='lhrtree.test')
    assert sum(isinstance(h, TqdmLoggingHandler) for h in log.handlers) == 1

    _warn, _info, _debug = get_logger_func('builder_test')
    with caplog.at_level(logging.WARNING, logger='lhrtree.builder_test'):
        _warn('something happened')
    assert 'something happened' in caplog.text


def test_color_formatter():
    formatter = ColorFormatter('%(levelname)s %(message)s')
    record = logging.LogRecord('lhrtree', logging.WARNING, __file__, 1, 'careful', None, None)
    info = logging.LogRecord('lhrtree', logging.INFO, __file__, 1, 'fine', None, None)

    assert formatter.format(record) == Fore.RED + 'WARNING careful' + Fore.RESET
    assert formatter.format(info) == 'INFO fine'
    assert formatter._style._fmt == '%(levelname)s %(message)s'
