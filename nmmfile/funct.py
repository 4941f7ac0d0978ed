"""
'nmmfile.funct'
- utility functions
- decorators for plot handling
- global configuration (Rcs.json) and logging setup

@author: Andrea Giura, Michael Matus
"""

import functools
import json
import logging
import os
import sys

import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)


class Bcol:
    HEADER = '\033[95m'
    OKBLUE = '\033[94m'
    OKCYAN = '\033[96m'
    OKGREEN = '\033[92m'
    WARNING = '\033[93m'
    FAIL = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'
    UNDERLINE = '\033[4m'


class ColorFormatter(logging.Formatter):
    """Console formatter that colours the level name with the Bcol codes"""
    colors = {
        logging.DEBUG: Bcol.OKBLUE,
        logging.INFO: Bcol.OKCYAN,
        logging.WARNING: Bcol.WARNING,
        logging.ERROR: Bcol.FAIL,
        logging.CRITICAL: Bcol.FAIL + Bcol.BOLD,
    }

    def format(self, record):
        msg = super().format(record)
        return self.colors.get(record.levelno, '') + msg + Bcol.ENDC


def setupLogging(level=logging.INFO, logFile=None):
    """
    Configures the logger of the 'nmmfile' namespace

    Parameters
    ----------
    level: int
        The logging level (e.g. logging.DEBUG, logging.INFO)
    logFile: str, optional
        If not None the log is also written to this file (no colours)
    """
    log = logging.getLogger('nmmfile')
    log.setLevel(level)

    # avoid duplicated handlers when called more than once
    if log.hasHandlers():
        log.handlers.clear()

    fmt = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(ColorFormatter(fmt, datefmt='%H:%M:%S'))
    log.addHandler(console)

    if logFile:
        fileHandler = logging.FileHandler(logFile, mode='w', encoding='utf-8')
        fileHandler.setLevel(level)
        fileHandler.setFormatter(logging.Formatter(fmt, datefmt='%H:%M:%S'))
        log.addHandler(fileHandler)

    log.debug('Logging initialized')


def persFig(figures, xlab, ylab, zlab=None, gridcol='k'):
    """
    Personalize an axis object or multiple
    Parameters
    ----------
    figures: list
        The list of ax objects to be customized
    gridcol: str
        The color of the grid
    xlab: str
    ylab: str -> labels
    zlab: str
    """
    for figure in figures:
        figure.set_xlabel(xlab)
        figure.set_ylabel(ylab)
        if zlab is not None:
            figure.set_zlabel(zlab)
        figure.grid(color=gridcol)


def options(save=None, bplt=False):
    """
    Decorator that implements global plot configurations

    Parameters
    ----------
    save: str
        If not none saves the figures in the path
    bplt: bool
        If True shows the images, otherwise all figures are closed

    Notes
    ----------
    Use this decorator only on methods that do not call plt.show
    """
    def outer(func):
        @functools.wraps(func)
        def inner(*args, **kwargs):
            ret = func(*args, **kwargs)

            figs = [plt.figure(n) for n in plt.get_fignums()]
            if save is not None:  # save the figures
                if len(figs) > 0:
                    logger.info(f'Saving images from function {func.__name__}')
                    for i, fig in enumerate(figs):
                        fig.savefig(f'{save}{func.__name__}_{rcs.currentImage}_{str(i)}.png', format='png')
                else:
                    logger.warning(f'Function {func.__name__} has no active figures')

            if bplt:  # plot the figure
                if len(figs) > 0:
                    logger.info(f'Plotting image from function {func.__name__}')
                    plt.show()
                else:
                    logger.warning(f'Function {func.__name__} has no active figures')
            else:
                plt.close('all')
            return ret
        return inner
    return outer


class Rc:
    """
    Class used to hold the global parameters of the package

    The parameters are read from the Rcs.json file shipped with the package:
    - physical constants of the nonlinearity correction
        - lambda2: half wavelength of the laser in m
        - wrapLimit: fold back limit of the Heydemann deviation in m
        - empiricalNLfactor: scale of the Dai correction amplitude in m
        - defaultDaiCorrection: Dai amplitude used when no estimate is possible in m
        - binHalfWidth: half width of the Dai angular bins in degrees
        - minFitPoints: minimum number of samples for the ellipse fit
    - plot options, 1 letter for the option (b: bplt, s: save), 1 letter
      for the type (p: profile, s: surface) and 3 chars for the plot
    """
    params: dict
    currentImage: str = 'Image'

    def __init__(self):
        rcfile = os.path.join(os.path.dirname(__file__), 'Rcs.json')
        self.load(rcfile)

    def load(self, js_fin):
        """
        Loads a user defined rc parameters file

        Parameters
        ----------
        js_fin: str
            The json file name
        """
        with open(js_fin, 'r') as fin:
            self.params = json.load(fin)

    def store(self, js_fout):
        """
        Saves the current parameters to a file

        Parameters
        ----------
        js_fout: str
            The json file name
        """
        with open(js_fout, 'w') as fout:
            json.dump(self.params, fout, indent=4)

    def setCurrentImage(self, name):
        self.currentImage = name


rcs = Rc()  # define global Rcs
