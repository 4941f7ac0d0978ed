"""
'nmmfile.leveling'
- leveling / referencing of height data:
    - profiles: constant reference values, line through the boundary points,
      least squares line
    - rasters: constant reference values, three point plane, least squares plane
- helpers to level profile.Profile and surface.Surface objects

Example
-------
>>> from nmmfile import leveling
>>> z, description = leveling.levelData(raw, numPoints, numProfiles, leveling.ReferenceTo.Lsq)
>>> leveling.SurfaceLeveling.level(sur, leveling.ReferenceTo.LsqPositive, bplt=True)

Notes
-----
The data is a flat array, a raster is stored profile after profile
(index = point + profile * numPoints). The spacing is assumed equidistant,
slopes are per point and per profile.

@author: Michael Matus, Andrea Giura
"""

import logging
from enum import Enum

import numpy as np

from nmmfile import profile, surface

logger = logging.getLogger(__name__)


class ReferenceTo(Enum):
    NoReference = 0  # do not change the height data
    Minimum = 1  # minimal z-value
    Maximum = 2  # maximal z-value
    Average = 3  # arithmetic mean z-value
    Central = 4  # mid of span z-value
    Bias = 5  # user defined bias z-value
    First = 6  # first value
    Last = 7  # last value
    Center = 8  # center value
    Line = 9  # line first to last point / three point plane
    Lsq = 10  # least squares line / plane
    LsqPositive = 11  # least squares line / plane, shifted to positive values
    LinePositive = 12  # line / three point plane, shifted to positive values


class DataType(Enum):
    Unknown = 0  # neither a single profile nor raster data
    Profile = 1
    Raster = 2


_PROFILE_TEXT = {
    ReferenceTo.NoReference: 'Profile not referenced',
    ReferenceTo.Average: 'Profile referenced to average height value ({})',
    ReferenceTo.Bias: 'Profile referenced to user supplied value ({})',
    ReferenceTo.Center: 'Profile referenced to central value of trace ({})',
    ReferenceTo.Central: 'Profile referenced to mid height value ({})',
    ReferenceTo.First: 'Profile referenced to first value of trace ({})',
    ReferenceTo.Last: 'Profile referenced to last value of trace ({})',
    ReferenceTo.Maximum: 'Profile referenced to maximum height value ({})',
    ReferenceTo.Minimum: 'Profile referenced to minimum height value ({})',
    ReferenceTo.Line: 'Profile leveled to line connecting boundary points',
    ReferenceTo.Lsq: 'Profile leveled to least square line',
    ReferenceTo.LinePositive: 'Profile leveled parallel to line connecting boundary points, always positive',
    ReferenceTo.LsqPositive: 'Profile leveled parallel to least square line, always positive',
}

_RASTER_TEXT = {
    ReferenceTo.NoReference: 'Surface not referenced',
    ReferenceTo.Average: 'Surface referenced to average height value ({})',
    ReferenceTo.Bias: 'Surface referenced to user supplied value ({})',
    ReferenceTo.Center: 'Surface referenced to central value of array ({})',
    ReferenceTo.Central: 'Surface referenced to mid height value ({})',
    ReferenceTo.First: 'Surface referenced to first value of array ({})',
    ReferenceTo.Last: 'Surface referenced to last value of array ({})',
    ReferenceTo.Maximum: 'Surface referenced to maximum height value ({})',
    ReferenceTo.Minimum: 'Surface referenced to minimum height value ({})',
    ReferenceTo.Line: 'Three point surface leveling',
    ReferenceTo.Lsq: 'Surface leveled to least square plane',
    ReferenceTo.LinePositive: 'Three point surface leveling, always positive',
    ReferenceTo.LsqPositive: 'Surface leveled parallel to least square plane, always positive',
}

_POSITIVE = (ReferenceTo.LinePositive, ReferenceTo.LsqPositive)


class DataLeveling:
    """
    Leveling of a profile or of a raster

    Parameters
    ----------
    rawData: np.array
        The height values, for rasters profile after profile
    numPoints: int
        The number of points per profile
    numProfiles: int
        The number of profiles, 1 for a single profile
    bias: float
        The reference value used by ReferenceTo.Bias
    """
    sign = 1.0

    def __init__(self, rawData, numPoints, numProfiles=1, bias=0.0):
        self.rawData = np.asarray(rawData, dtype=float).ravel()
        self.numPoints = numPoints
        self.numProfiles = numProfiles
        self.biasValue = bias
        self.mode = ReferenceTo.NoReference

        self.intercept = 0.0  # constant part to be subtracted
        self.slopeX = 0.0  # per point part
        self.slopeY = 0.0  # per profile part

    # z reference values
    @property
    def maximumValue(self):
        return np.max(self.rawData)

    @property
    def minimumValue(self):
        return np.min(self.rawData)

    @property
    def averageValue(self):
        return np.mean(self.rawData)

    @property
    def centralValue(self):
        return (self.maximumValue + self.minimumValue) / 2.0

    # x reference values
    @property
    def firstValue(self):
        return self.rawData[0]

    @property
    def lastValue(self):
        return self.rawData[-1]

    @property
    def centerValue(self):
        return self.rawData[self.rawData.size // 2]

    @property
    def dataType(self):
        if self.numPoints <= 0 or self.numProfiles <= 0:
            return DataType.Unknown
        if self.rawData.size != self.numPoints * self.numProfiles:
            return DataType.Unknown
        if self.numProfiles == 1:
            return DataType.Profile
        return DataType.Raster

    @property
    def levelModeDescription(self):
        dt = self.dataType
        if dt == DataType.Unknown:
            return 'Data not leveled'
        text = _PROFILE_TEXT if dt == DataType.Profile else _RASTER_TEXT
        return text[self.mode].format(self.intercept)

    def levelData(self, mode: ReferenceTo):
        """
        Subtracts the reference selected by mode

        Parameters
        ----------
        mode: ReferenceTo
            The reference / leveling law

        Returns
        -------
        leveled: np.array
            The leveled data, a copy of the raw data if the geometry is invalid
        """
        self.intercept, self.slopeX, self.slopeY = 0.0, 0.0, 0.0
        dt = self.dataType
        if dt == DataType.Unknown:
            logger.warning(f'{self.rawData.size} values do not match {self.numPoints} x {self.numProfiles}, '
                           f'data not leveled')
            self.mode = ReferenceTo.NoReference
            return self.rawData.copy()

        self.mode = mode
        if dt == DataType.Profile:
            if mode in (ReferenceTo.Line, ReferenceTo.LinePositive):
                self._fitBoundaryLine()
            elif mode in (ReferenceTo.Lsq, ReferenceTo.LsqPositive):
                self._fitLsqLine()
            else:
                self.intercept = self._constantFor(mode)
        else:
            if mode in (ReferenceTo.Line, ReferenceTo.LinePositive):
                self._fitThreePointPlane()
            elif mode in (ReferenceTo.Lsq, ReferenceTo.LsqPositive):
                self._fitLsqPlane()
            else:
                self.intercept = self._constantFor(mode)

        i = np.tile(np.arange(self.numPoints), self.numProfiles)
        j = np.repeat(np.arange(self.numProfiles), self.numPoints)
        leveled = self.sign * (self.rawData - (self.intercept + self.slopeX * i + self.slopeY * j))

        if mode in _POSITIVE:
            leveled = leveled - np.nanmin(leveled)
        logger.debug(self.levelModeDescription)
        return leveled

    def _constantFor(self, mode):
        values = {
            ReferenceTo.First: lambda: self.firstValue,
            ReferenceTo.Last: lambda: self.lastValue,
            ReferenceTo.Center: lambda: self.centerValue,
            ReferenceTo.Minimum: lambda: self.minimumValue,
            ReferenceTo.Maximum: lambda: self.maximumValue,
            ReferenceTo.Average: lambda: self.averageValue,
            ReferenceTo.Central: lambda: self.centralValue,
            ReferenceTo.Bias: lambda: self.biasValue,
        }
        if mode not in values:
            return 0.0
        return float(values[mode]())

    def _fitBoundaryLine(self):
        n = self.rawData.size
        self.intercept = self.firstValue
        self.slopeX = (self.lastValue - self.firstValue) / (n - 1) if n > 1 else 0.0

    def _fitThreePointPlane(self):
        M, N = self.numPoints, self.numProfiles
        self.intercept = self.firstValue
        self.slopeX = (self.rawData[M - 1] - self.firstValue) / (M - 1) if M > 1 else 0.0
        self.slopeY = (self.rawData[self.rawData.size - M] - self.firstValue) / (N - 1)

    def _fitLsqLine(self):
        """Least squares line, works with equidistant spacing only"""
        n = self.rawData.size
        x = np.arange(n, dtype=float)
        sx = x.sum()
        sy = self.rawData.sum()
        sxx = (x * x).sum()
        sxy = (x * self.rawData).sum()
        den = n * sxx - sx * sx
        self.slopeX = (n * sxy - sx * sy) / den if den != 0 else 0.0
        self.intercept = (sy - self.slopeX * sx) / n

    def _fitLsqPlane(self):
        """
        Least squares plane for rectangular equidistant rasters,
        EUNA 15178 ENC eq. (9.7), spacing 1 in both directions
        """
        M, N = float(self.numPoints), float(self.numProfiles)
        z = self.rawData.reshape(self.numProfiles, self.numPoints)
        k = np.arange(self.numPoints, dtype=float)
        l = np.arange(self.numProfiles, dtype=float)
        u = float((z * k[None, :]).sum())
        v = float((z * l[:, None]).sum())
        w = float(z.sum())

        self.intercept = ((7 * M * N + M + N - 5) * w - 6 * u * (N + 1) - 6 * v * (M + 1)) / \
            (M * N * (M + 1) * (N + 1))
        self.slopeX = (12 * u - 6 * w * (M - 1)) / (M * N * (M - 1) * (M + 1)) if M > 1 else 0.0
        self.slopeY = (12 * v - 6 * w * (N - 1)) / (M * N * (N - 1) * (N + 1)) if N > 1 else 0.0


def levelData(rawData, numPoints, numProfiles=1, mode=ReferenceTo.NoReference, bias=0.0):
    """
    Levels profile or raster data

    Parameters
    ----------
    rawData: np.array
        The height values, for rasters profile after profile
    numPoints: int
        The number of points per profile
    numProfiles: int
        The number of profiles
    mode: ReferenceTo
        The leveling law
    bias: float
        The value subtracted by ReferenceTo.Bias

    Returns
    -------
    leveled: np.array
        The leveled data
    description: str
        Human readable description of the applied leveling
    """
    dl = DataLeveling(rawData, numPoints, numProfiles, bias=bias)
    leveled = dl.levelData(mode)
    return leveled, dl.levelModeDescription


class ProfileLeveling:
    @staticmethod
    def level(obj: profile.Profile, mode: ReferenceTo, bias=0.0, bplt=False):
        """
        Levels the profile in place

        Parameters
        ----------
        obj: profile.Profile
            The profile to be leveled
        mode: ReferenceTo
            The leveling law
        bias: float
            The value subtracted by ReferenceTo.Bias
        bplt: bool
            Plots the original and the leveled profile

        Returns
        -------
        description: str
            The applied leveling
        """
        obj.Z, description = levelData(obj.Z, np.size(obj.Z), 1, mode, bias)
        if bplt: obj.pltCompare()
        return description


class SurfaceLeveling:
    @staticmethod
    def level(obj: surface.Surface, mode: ReferenceTo, bias=0.0, bplt=False):
        """
        Levels the topography in place, every row of Z is a profile

        Parameters
        ----------
        obj: surface.Surface
            The surface to be leveled
        mode: ReferenceTo
            The leveling law
        bias: float
            The value subtracted by ReferenceTo.Bias
        bplt: bool
            Plots the original and the leveled topography

        Returns
        -------
        description: str
            The applied leveling
        """
        (ny, nx) = obj.Z.shape
        leveled, description = levelData(obj.Z.ravel(), nx, ny, mode, bias)
        obj.Z = leveled.reshape(ny, nx)
        if bplt: obj.pltCompare()
        return description
