"""
'nmmfile.surface'
- raster of one NMM channel, one row of Z per scan line
- the raster as extracted is kept in X0, Y0, Z0 for comparisons after leveling
- split into profiles, txt export

Example
-------
>>> from nmmfile import surface
>>> sur = surface.Surface()
>>> sur.setValues(x, y, Z, bplt=False)
>>> rows = sur.toProfiles('x')

@author: Andrea Giura
"""
import copy
import os

import numpy as np
import matplotlib.pyplot as plt
from matplotlib import cm

from nmmfile import profile, funct
from nmmfile.funct import options, rcs


class Surface:
    """
    Scan field: x positions along the scan lines, y positions of the lines,
    Z[line, point] channel values
    """
    def __init__(self):
        self.X0, self.Y0, self.Z0 = None, None, None
        self.X, self.Y, self.Z = None, None, None

        self.x, self.y = None, None
        self.rangeX, self.rangeY = None, None

        self.name = 'Figure'
        self.unit = 'm'

    def setValues(self, x, y, Z, bplt):
        """
        Sets the raster, the mesh is built from the two axes

        Parameters
        ----------
        x: []
            Positions along a scan line, len = columns of Z
        y: []
            Positions of the scan lines, len = rows of Z
        Z: np.array
            Channel values
        bplt: bool
            Plots the raster
        """
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        Z = np.asarray(Z, dtype=float)
        if Z.shape != (y.size, x.size):
            raise ValueError(f'Z shape {Z.shape} does not match ({y.size}, {x.size})')

        self.x, self.y, self.Z = x, y, Z
        self.rangeX = np.ptp(x) if x.size else 0
        self.rangeY = np.ptp(y) if y.size else 0
        self.X, self.Y = np.meshgrid(x, y)
        self.X0, self.Y0, self.Z0 = copy.copy(self.X), copy.copy(self.Y), copy.copy(self.Z)

        if bplt: self.pltC()

    def saveTxt(self, fname):
        """
        Writes the raster as 3 columns [x, y, z], line after line

        Parameters
        ----------
        fname : str
            A folder (the file is named after the surface) or a file path

        Returns
        -------
        name: str
            The written file
        """
        if os.path.isdir(fname):
            name = os.path.join(fname, self.name + '.txt')
        else:
            name = os.path.splitext(fname)[0] + '.txt'
        np.savetxt(name, np.c_[self.X.ravel(), self.Y.ravel(), self.Z.ravel()], fmt='%.6e',
                   header=f'{self.name} x[m] y[m] z[{self.unit}]')
        return name

    def toProfiles(self, axis='x'):
        """
        Splits the raster into profiles

        Parameters
        ----------
        axis: str
            'x' the scan lines (rows of Z), 'y' the columns across the lines

        Returns
        -------
        profiles: list
            profile.Profile objects, named after their index
        """
        if axis not in ['x', 'y']: raise ValueError(f'{axis} is not a valid axis')

        pos, rows = (self.x, self.Z) if axis == 'x' else (self.y, self.Z.T)
        profiles = []
        for i, vals in enumerate(rows):
            prf = profile.Profile()
            prf.setValues(pos, vals, bplt=False)
            prf.name = f'{self.name} {axis}{i}'
            prf.unit = self.unit
            profiles.append(prf)
        return profiles

    #################
    # PLOT SECTION  #
    #################
    @options(bplt=rcs.params['bsCom'], save=rcs.params['ssCom'])
    def pltCompare(self):
        """Extracted raster and leveled / corrected raster side by side"""
        fig, (ax, bx) = plt.subplots(nrows=1, ncols=2, sharey=True)
        for a, (X, Y, Z), title in zip([ax, bx],
                                       [(self.X0, self.Y0, self.Z0), (self.X, self.Y, self.Z)],
                                       ['extracted', 'current']):
            mesh = a.pcolormesh(X * 1e6, Y * 1e6, Z, cmap=cm.viridis)
            fig.colorbar(mesh, ax=a, label=f'z [{self.unit}]')
            a.set_title(f'{self.name} ({title})')
        funct.persFig(
            [ax, bx],
            gridcol='grey',
            xlab='x [um]',
            ylab='y [um]'
        )

    @options(bplt=rcs.params['bsCol'], save=rcs.params['ssCol'])
    def pltC(self):
        """Colour map of the raster, lateral axes in um"""
        fig, ax = plt.subplots()
        mesh = ax.pcolormesh(self.X * 1e6, self.Y * 1e6, self.Z, cmap=cm.viridis)
        fig.colorbar(mesh, ax=ax, label=f'z [{self.unit}]')
        funct.persFig(
            [ax],
            gridcol='grey',
            xlab='x [um]',
            ylab='y [um]'
        )
        ax.set_title(self.name)
        ax.grid(False)
        ax.set_aspect('equal')
