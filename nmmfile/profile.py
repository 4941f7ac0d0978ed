"""
'nmmfile.profile'
- single scan line of one NMM channel (lateral position, value)
- the values as extracted are kept in X0, Z0 for comparisons after leveling
- plain txt import / export

Example
-------
>>> from nmmfile import profile
>>> prf = profile.Profile()
>>> prf.setValues(x, z, bplt=False)
>>> prf.saveTxt('out/')

@author: Andrea Giura
"""

import os
import copy

import numpy as np
import matplotlib.pyplot as plt

from nmmfile import funct
from nmmfile.funct import options, rcs


class Profile:
    """
    One scan line: X lateral positions in m, Z channel values
    (heights in m for the length channels)
    """
    def __init__(self):
        self.X = None
        self.Z = None
        self.Z0, self.X0 = None, None

        self.name = 'Profile'
        self.unit = 'm'

    def setValues(self, X, Z, bplt):
        """
        Sets the profile data, the originals are copied to X0, Z0

        Parameters
        ----------
        X: []
            Lateral positions
        Z: []
            Channel values, same length as X
        bplt: bool
            Plots the profile
        """
        self.X = np.asarray(X, dtype=float)
        self.Z = np.asarray(Z, dtype=float)
        self.X0, self.Z0 = copy.copy(self.X), copy.copy(self.Z)

        if bplt: self.pltPrf()

    def openTxt(self, fname, bplt, header=0):
        """
        Reads a profile written by saveTxt (or any 2 columns [x, z] txt file)

        Parameters
        ----------
        fname : str
            The file path
        bplt : bool
            If true plots the profile
        header : int, optional
            Lines to skip at the top, '#' comment lines are always skipped

        Notes
        -----
        Empty fields in the x column are read as NaN through
        >>> converters={0: lambda s: float(s or np.nan)}
        """
        self.name = os.path.basename(fname)
        X, Z = np.genfromtxt(fname,
                             skip_header=header,
                             usecols=[0, 1], unpack=True,
                             converters={0: lambda s: float(s or np.nan)})
        self.setValues(X, Z, bplt)

    def saveTxt(self, fname):
        """
        Writes the profile as 2 columns [x, z], the name and unit in a comment line

        Parameters
        ----------
        fname : str
            A folder (the file is named after the profile) or a file path

        Returns
        -------
        name: str
            The written file
        """
        if os.path.isdir(fname):
            name = os.path.join(fname, self.name + '.txt')
        else:
            name = os.path.splitext(fname)[0] + '.txt'
        np.savetxt(name, np.c_[self.X, self.Z], fmt='%.6e',
                   header=f'{self.name} x[m] z[{self.unit}]')
        return name

    #################
    # PLOT SECTION  #
    #################
    @options(bplt=rcs.params['bpPrf'], save=rcs.params['spPrf'])
    def pltPrf(self):
        """Plots the profile, lateral axis in um"""
        fig, ax = plt.subplots()
        ax.plot(self.X * 1e6, self.Z, color='teal')
        funct.persFig(
            [ax],
            gridcol='grey',
            xlab='x [um]',
            ylab=f'z [{self.unit}]'
        )
        ax.set_title(self.name)

    @options(bplt=rcs.params['bpCom'], save=rcs.params['spCom'])
    def pltCompare(self):
        """Extracted profile on top, leveled / corrected profile below"""
        fig, (ax, bx) = plt.subplots(nrows=2, ncols=1, sharex=True)
        ax.plot(self.X0 * 1e6, self.Z0, color='teal')
        ax.set_title(f'{self.name} (extracted)')
        bx.plot(self.X * 1e6, self.Z, color='red')
        funct.persFig(
            [ax, bx],
            gridcol='grey',
            xlab='x [um]',
            ylab=f'z [{self.unit}]'
        )
