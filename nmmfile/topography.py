"""
'nmmfile.topography'
- storage of the topographic scan data (all channels, forward and backward)
- extraction of single profiles or of the whole scan

Usage
-----
1. create a TopographyData with the scan geometry
2. populate it line by line with insertLine()
3. extract profiles in any order with extractProfile(), profile index 0
   returns all profiles at once, hence profiles are enumerated starting at 1

Example
-------
>>> from nmmfile import topography as tp
>>> td = tp.TopographyData(5, 10, 100, tp.ScanDirectionStatus.ForwardOnly)
>>> td.insertLine(line, 0, tp.ScanDirection.Forward)
>>> z = td.extractProfile(4, 0, tp.TopographyProcessType.ForwardOnly)

@author: Michael Matus, Andrea Giura
"""

import logging
from dataclasses import dataclass
from enum import Enum

import numpy as np

logger = logging.getLogger(__name__)


class ScanDirection(Enum):
    Unknown = 0
    Forward = 1
    Backward = 2


class ScanDirectionStatus(Enum):
    Unknown = 0
    NoData = 1
    ForwardOnly = 2  # files contain forward scan data only
    ForwardAndBackward = 3  # forward and backward scan data
    ForwardAndBackwardJustified = 4  # backward data with spurious leading profiles removed


class TopographyProcessType(Enum):
    NoProcessing = 0
    ForwardOnly = 1
    BackwardOnly = 2
    Average = 3  # mean of forward and backward scan
    Difference = 4  # forward minus backward scan


@dataclass
class NoGrid:
    def get(self, direction):
        return None


@dataclass
class ForwardGrid:
    forward: np.ndarray

    def get(self, direction):
        return self.forward if direction == ScanDirection.Forward else None


@dataclass
class BothGrids:
    forward: np.ndarray
    backward: np.ndarray

    def get(self, direction):
        if direction == ScanDirection.Forward:
            return self.forward
        if direction == ScanDirection.Backward:
            return self.backward
        return None


def _allocate(status: ScanDirectionStatus, shape):
    if status == ScanDirectionStatus.ForwardOnly:
        return ForwardGrid(np.full(shape, np.nan))
    if status in (ScanDirectionStatus.ForwardAndBackward,
                  ScanDirectionStatus.ForwardAndBackwardJustified):
        return BothGrids(np.full(shape, np.nan), np.full(shape, np.nan))
    return NoGrid()


class TopographyData:
    """
    Dense storage of a scan, one [column, row] matrix per scan direction

    Parameters
    ----------
    numberOfColumns: int
        The number of channels recorded in the scan
    numberOfProfiles: int
        The number of scan lines
    numberOfPointsPerProfile: int
        The (nominal) number of points of every scan line
    scanStatus: ScanDirectionStatus
        Decides which matrices are allocated
    xyColumn: int, optional
        Index of the XY motion vector column, its backward data is reversed
        on extraction. -1 if the column is not present
    """
    def __init__(self, numberOfColumns, numberOfProfiles, numberOfPointsPerProfile,
                 scanStatus: ScanDirectionStatus, xyColumn=-1):
        if numberOfColumns < 0 or numberOfProfiles < 0 or numberOfPointsPerProfile < 0:
            raise ValueError('The scan dimensions must not be negative')
        self.numberOfColumns = numberOfColumns
        self.numberOfProfiles = numberOfProfiles
        self.numberOfPointsPerProfile = numberOfPointsPerProfile
        self.numberTotalPoints = numberOfProfiles * numberOfPointsPerProfile
        self.scanStatus = scanStatus
        self.xyColumn = xyColumn

        self._grids = _allocate(scanStatus, (numberOfColumns, self.numberTotalPoints))

    def hasData(self, direction: ScanDirection):
        return self._grids.get(direction) is not None

    def insertLine(self, dataLine, position, direction: ScanDirection):
        """
        Writes one data line (all the channels) at the given position

        Parameters
        ----------
        dataLine: np.array
            One value per column
        position: int
            The row index in the range [0, numberTotalPoints)
        direction: ScanDirection
            The matrix to be populated

        Notes
        -----
        Invalid requests are silently ignored: the file reader may produce
        fewer lines than expected when a scan was terminated prematurely.
        """
        if dataLine is None:
            return
        if position < 0 or position >= self.numberTotalPoints:
            return
        if len(dataLine) != self.numberOfColumns:
            return
        grid = self._grids.get(direction)
        if grid is None:
            return
        grid[:, position] = dataLine

    def replaceColumn(self, columnIndex, values, direction: ScanDirection):
        """
        Overwrites one channel of the scan, used to store NL corrected heights

        Parameters
        ----------
        columnIndex: int
            The column to be replaced
        values: np.array
            numberTotalPoints values
        direction: ScanDirection
            The matrix to be modified
        """
        if columnIndex < 0 or columnIndex >= self.numberOfColumns:
            logger.debug(f'Column {columnIndex} out of range, not replaced')
            return
        grid = self._grids.get(direction)
        if grid is None:
            logger.debug(f'No {direction.name} data, column {columnIndex} not replaced')
            return
        values = np.asarray(values, dtype=float).ravel()
        if values.size != self.numberTotalPoints:
            logger.debug(f'{values.size} values for column {columnIndex}, '
                         f'{self.numberTotalPoints} expected, not replaced')
            return
        grid[columnIndex, :] = values

    def extractProfile(self, column, profileIndex, processType: TopographyProcessType):
        """
        Extracts a profile (or all the profiles) of a channel

        Parameters
        ----------
        column: int
            The channel index
        profileIndex: int
            0 returns all the profiles, 1 .. numberOfProfiles a single profile
        processType: TopographyProcessType
            How forward and backward data are combined

        Returns
        -------
        profile: np.array
            The requested data, all NaN if the request is invalid
        """
        if profileIndex < 0 or profileIndex > self.numberOfProfiles:
            return self._invalidProfile()
        if column < 0 or column >= self.numberOfColumns:
            return self._invalidProfile(profileIndex == 0)
        fwd = self._profileOf(column, profileIndex, ScanDirection.Forward)
        bwd = self._profileOf(column, profileIndex, ScanDirection.Backward)
        return self._processTwoProfiles(fwd, bwd, processType)

    def _processTwoProfiles(self, fwd, bwd, processType):
        if processType == TopographyProcessType.ForwardOnly:
            return fwd
        if processType == TopographyProcessType.BackwardOnly:
            return bwd
        if processType == TopographyProcessType.Average:
            return (fwd + bwd) * 0.5
        if processType == TopographyProcessType.Difference:
            return fwd - bwd
        return np.full(fwd.size, np.nan)

    def _profileOf(self, column, profileIndex, direction):
        grid = self._grids.get(direction)
        if grid is None:
            return self._invalidProfile(profileIndex == 0)
        if profileIndex == 0:
            prf = grid[column, :].copy()
        else:
            start = (profileIndex - 1) * self.numberOfPointsPerProfile
            prf = grid[column, start: start + self.numberOfPointsPerProfile].copy()
        # the backward scan traverses the XY vector in reverse order
        if direction == ScanDirection.Backward and column == self.xyColumn:
            prf = prf[::-1]
        return prf

    def _invalidProfile(self, allProfiles=False):
        n = self.numberTotalPoints if allProfiles else self.numberOfPointsPerProfile
        return np.full(n, np.nan)
