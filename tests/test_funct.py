import json
import logging

import matplotlib.pyplot as plt

from nmmfile import funct


def test_rc_defaults() -> None:
    rc = funct.Rc()
    assert rc.params['lambda2'] == 316.409754e-9
    assert rc.params['minFitPoints'] == 5
    assert rc.currentImage == 'Image'


def test_rc_store_and_load(tmp_path) -> None:
    rc = funct.Rc()
    rc.params['defaultDaiCorrection'] = 1e-9
    fname = tmp_path / 'rc.json'
    rc.store(fname)
    assert json.loads(fname.read_text())['defaultDaiCorrection'] == 1e-9

    other = funct.Rc()
    other.load(fname)
    assert other.params == rc.params
    assert funct.rcs.params['defaultDaiCorrection'] == 0.5e-9


def test_options_closes_figures() -> None:
    @funct.options()
    def draw():
        plt.subplots()
        return 42

    assert draw() == 42
    assert plt.get_fignums() == []


def test_options_saves_figures(tmp_path) -> None:
    @funct.options(save=str(tmp_path) + '/')
    def draw():
        plt.subplots()

    funct.rcs.setCurrentImage('scan')
    try:
        draw()
    finally:
        funct.rcs.setCurrentImage('Image')
    assert (tmp_path / 'draw_scan_0.png').exists()


def test_setup_logging_is_idempotent(tmp_path) -> None:
    logFile = tmp_path / 'nmm.log'
    funct.setupLogging(logging.DEBUG, logFile=str(logFile))
    funct.setupLogging(logging.DEBUG, logFile=str(logFile))
    log = logging.getLogger('nmmfile')
    try:
        assert len(log.handlers) == 2
        assert isinstance(log.handlers[0].formatter, funct.ColorFormatter)
        logging.getLogger('nmmfile.scan').warning('glitch')
        for h in log.handlers:
            h.flush()
        assert 'glitch' in logFile.read_text()
    finally:
        for h in log.handlers:
            h.close()
        log.handlers.clear()
        log.setLevel(logging.NOTSET)


def test_color_formatter() -> None:
    record = logging.LogRecord('nmmfile', logging.WARNING, __file__, 1, 'check', None, None)
    text = funct.ColorFormatter('%(message)s').format(record)
    assert text == funct.Bcol.WARNING + 'check' + funct.Bcol.ENDC
