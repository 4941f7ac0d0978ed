"""
'nmmfile.scan'
- column layout of NMM scan files from the data mask
- classification of the scan direction status from the index data
- ScanData: the topography of a scan loaded from the data lines, with
  profile extraction by column symbol and nonlinearity correction of the
  surface height channel

Example
-------
>>> from nmmfile import scan
>>> geo = scan.ScanGeometry.fromProfileLengths(dataMask, fwdLengths, bwdLengths, deltaX=1e-6)
>>> sd = scan.ScanData(geo, fwdLines, bwdLines)
>>> sd.applyNLcorrection()
>>> prf = sd.toProfile('-LZ+AZ', 1, TopographyProcessType.Average)

Notes
-----
The description (*.dsc), index (*.ind) and data (*.dat) files are read by
other tools, ScanData receives the geometry and two sources of data lines
(any iterable or reader of numeric rows, None marks the end of the stream).

@author: Michael Matus, Andrea Giura
"""

import logging
from dataclasses import dataclass, field

import numpy as np
from alive_progress import alive_bar
from tabulate import tabulate

from nmmfile import profile, surface
from nmmfile.nlcorrection import NLCorrection, CorrectionStatus
from nmmfile.topography import TopographyData, ScanDirection, ScanDirectionStatus, TopographyProcessType

logger = logging.getLogger(__name__)

HEIGHT = '-LZ+AZ'
XYVEC = 'XYvec'
SIN_Z = 'F4'
COS_Z = 'F5'


class ColumnPredicate:
    """Symbol, title and unit of a data column"""
    def __init__(self, symbol, title, unit):
        self.symbol = symbol.strip()
        self.title = title.strip()
        self.unit = unit.strip()

    def isOf(self, symbol):
        """
        True if the column is identified by symbol (case insensitive),
        'height' and 'AZ-LZ' are aliases of '-LZ+AZ', 'XY' of 'XYvec'
        """
        symbol = symbol.strip()
        if symbol.lower() in ('height', 'az-lz'):
            symbol = HEIGHT
        if symbol.lower() == 'xy':
            symbol = XYVEC
        return self.symbol.lower() == symbol.lower()

    def __repr__(self):
        return f'ColumnPredicate({self.symbol!r}, {self.title!r}, {self.unit!r})'


# the order is essential, data files have the columns in the same order
_MASK_BITS = [
    (0x1, 'LX', 'X length', 'm'),
    (0x2, 'LY', 'Y length', 'm'),
    (0x4, 'LZ', 'Z length', 'm'),
    (0x8, 'WX', 'X angle', 'n'),
    (0x10, 'WY', 'Y angle', 'n'),
    (0x20, 'WZ', 'Z angle', 'n'),
    (0x40, 'AX', 'Auxiliary input 1', 'n'),
    (0x80, None, None, None),  # the *.dsc file sometimes masks the AY channel
    (0x100, 'AZ', 'Probe values', 'm'),
    (0x200, 'TX', 'Air temperature X', 'oC'),
    (0x400, 'TY', 'Air temperature Y', 'oC'),
    (0x800, 'TZ', 'Air temperature Z', 'oC'),
    (0x1000, 'LD', 'Air pressure', 'Pa'),
    (0x2000, 'LF', 'Relative humidity', '%'),
    (0x4000, '?0', '??? 0', 'n'),
    (0x8000, '?1', '??? 1', 'n'),
    (0x10000, '?2', '??? 2', 'n'),
    (0x20000, 'F0', 'Interferometer signal XS', 'n'),
    (0x40000, 'F1', 'Interferometer signal XC', 'n'),
    (0x80000, 'F2', 'Interferometer signal YS', 'n'),
    (0x100000, 'F3', 'Interferometer signal YC', 'n'),
    (0x200000, 'F4', 'Interferometer signal ZS', 'n'),
    (0x400000, 'F5', 'Interferometer signal ZC', 'n'),
    (0x800000, 'AZ0', 'Probe input 1', 'n'),
    (0x1000000, 'AZ1', 'Probe input 2', 'n'),
]


def columnPredicatesFor(dataMask):
    """
    Interprets the data mask of a scan

    Parameters
    ----------
    dataMask: int
        The data mask bitfield

    Returns
    -------
    predicates: list
        One ColumnPredicate per column of the data file. The synthetic
        columns '-LZ+AZ' and 'XYvec' are not in the mask but are present
        in the files when LZ and AZ (LX and LY) are recorded.
    """
    predicates = [ColumnPredicate(sym, title, unit)
                  for bit, sym, title, unit in _MASK_BITS
                  if sym is not None and dataMask & bit]
    symbols = [p.symbol for p in predicates]
    if 'LZ' in symbols and 'AZ' in symbols:
        predicates.append(ColumnPredicate(HEIGHT, 'Surface height', 'm'))
    if 'LX' in symbols and 'LY' in symbols:
        predicates.append(ColumnPredicate(XYVEC, 'XY motion vector', 'm'))
    return predicates


def numberOfColumnsFor(dataMask):
    return len(columnPredicatesFor(dataMask))


@dataclass
class ScanGeometry:
    """Geometry of a scan as obtained from the index and description files"""
    dataMask: int
    numberOfProfiles: int
    numberOfDataPoints: int
    scanStatus: ScanDirectionStatus
    forwardProfileLengths: list = field(default_factory=list)
    backwardProfileLengths: list = field(default_factory=list)
    spuriousProfiles: int = 0
    spuriousDataLines: int = 0
    dataPointsGlitch: int = 0
    deltaX: float = 1.0
    deltaY: float = 1.0
    columnPredicates: list = field(init=False)

    def __post_init__(self):
        self.columnPredicates = columnPredicatesFor(self.dataMask)

        # missing lengths: every profile has the nominal number of points
        if not self.forwardProfileLengths:
            self.forwardProfileLengths = [self.numberOfDataPoints] * self.numberOfProfiles
        if not self.backwardProfileLengths and self.hasBackward:
            self.backwardProfileLengths = [self.numberOfDataPoints] * self.numberOfProfiles
        if len(self.forwardProfileLengths) != self.numberOfProfiles or \
                (self.hasBackward and len(self.backwardProfileLengths) != self.numberOfProfiles):
            raise ValueError(f'Profile lengths do not match {self.numberOfProfiles} profiles')

    @property
    def hasBackward(self):
        return self.scanStatus in (ScanDirectionStatus.ForwardAndBackward,
                                   ScanDirectionStatus.ForwardAndBackwardJustified)

    @property
    def numberOfColumns(self):
        return len(self.columnPredicates)

    @classmethod
    def fromProfileLengths(cls, dataMask, forwardLengths, backwardLengths=(), deltaX=1.0, deltaY=1.0):
        """
        Classifies the scan direction status from the number of points of
        every forward and backward profile

        Parameters
        ----------
        dataMask: int
            The data mask of the scan
        forwardLengths: list
            Number of data lines of each forward profile
        backwardLengths: list
            Number of data lines of each backward profile, the backward file
            may contain leading spurious profiles (NMM storage error)
        deltaX, deltaY: float
            Point and line spacing in m

        Returns
        -------
        geo: ScanGeometry
        """
        fwd = [int(n) for n in forwardLengths]
        bwd = [int(n) for n in backwardLengths]
        spuriousProfiles = 0
        spuriousLines = 0

        if len(fwd) == 0:
            status = ScanDirectionStatus.NoData
            bwd = []
        elif len(bwd) < len(fwd):  # backward file invalid or missing
            status = ScanDirectionStatus.ForwardOnly
            bwd = []
        elif len(bwd) > len(fwd):
            status = ScanDirectionStatus.ForwardAndBackwardJustified
            spuriousProfiles = len(bwd) - len(fwd)
            spuriousLines = sum(bwd[:spuriousProfiles])
            bwd = bwd[spuriousProfiles:]
            logger.info(f'{spuriousProfiles} spurious backward profiles ({spuriousLines} lines) discarded')
        else:
            status = ScanDirectionStatus.ForwardAndBackward

        nominal = 0
        glitch = 0
        if fwd:
            nominal = max(fwd + bwd)
            glitch = nominal - min(fwd + bwd)
            if glitch > 0:
                logger.info(f'Profiles shorter than nominal ({nominal}) by up to {glitch} points')

        return cls(dataMask=dataMask, numberOfProfiles=len(fwd), numberOfDataPoints=nominal,
                   scanStatus=status, forwardProfileLengths=fwd, backwardProfileLengths=bwd,
                   spuriousProfiles=spuriousProfiles, spuriousDataLines=spuriousLines,
                   dataPointsGlitch=glitch, deltaX=deltaX, deltaY=deltaY)

    def table(self):
        """The geometry as a printable table"""
        rows = [
            ['Columns', self.numberOfColumns],
            ['Profiles', self.numberOfProfiles],
            ['Points per profile', self.numberOfDataPoints],
            ['Glitched points', self.dataPointsGlitch],
            ['Spurious profiles', self.spuriousProfiles],
            ['Spurious data lines', self.spuriousDataLines],
            ['Delta X [m]', self.deltaX],
            ['Delta Y [m]', self.deltaY],
            ['Scan status', self.scanStatus.name],
        ]
        return tabulate(rows, headers=['Parameter', 'Value'])


def _lineReader(source):
    """Wraps a line source in a function returning None at the end of the stream"""
    if source is None:
        return lambda: None
    if callable(source):
        return source
    it = iter(source)
    return lambda: next(it, None)


class ScanData:
    """
    The topography of a scan (all channels, forward and backward)

    Parameters
    ----------
    geometry: ScanGeometry
        The scan geometry and direction status
    forwardLines: iterable or callable
        The data lines of the forward scan
    backwardLines: iterable or callable, optional
        The data lines of the backward scan, including the spurious ones
    """
    def __init__(self, geometry: ScanGeometry, forwardLines, backwardLines=None):
        self.geometry = geometry
        self.nlCorrectionApplied = False
        self.nlCorrectionSpan = 0.0
        self.nlStatus = {}

        self.topography = TopographyData(geometry.numberOfColumns,
                                         geometry.numberOfProfiles,
                                         geometry.numberOfDataPoints,
                                         geometry.scanStatus,
                                         xyColumn=self.getColumnIndexFor(XYVEC))
        self._loadForward(_lineReader(forwardLines))
        if self.topography.hasData(ScanDirection.Backward) and backwardLines is not None:
            self._loadBackward(_lineReader(backwardLines))

    @property
    def scanStatus(self):
        return self.geometry.scanStatus

    def getColumnIndexFor(self, symbol):
        for i, pred in enumerate(self.geometry.columnPredicates):
            if pred.isOf(symbol):
                return i
        return -1

    def columnPresent(self, symbol):
        return self.getColumnIndexFor(symbol) != -1

    def getPredicateFor(self, column):
        """The ColumnPredicate of a column given by index or symbol, None if not present"""
        if isinstance(column, str):
            column = self.getColumnIndexFor(column)
        if column < 0 or column >= self.geometry.numberOfColumns:
            return None
        return self.geometry.columnPredicates[column]

    def extractProfile(self, column, profileIndex, processType: TopographyProcessType):
        """
        Returns the profile of a column given by index or symbol,
        profileIndex 0 returns all the profiles
        """
        if isinstance(column, str):
            column = self.getColumnIndexFor(column)
        return self.topography.extractProfile(column, profileIndex, processType)

    def _loadForward(self, nextLine):
        geo = self.geometry
        if geo.numberOfProfiles == 0:
            return
        dataLine = None
        with alive_bar(geo.numberOfProfiles, force_tty=True,
                       title='Forward', theme='smooth',
                       elapsed_end=True, stats_end=True, length=30) as bar:
            for p in range(geo.numberOfProfiles):
                for i in range(geo.numberOfDataPoints):
                    if i < geo.forwardProfileLengths[p]:
                        dataLine = nextLine()
                    self.topography.insertLine(dataLine, p * geo.numberOfDataPoints + i, ScanDirection.Forward)
                bar()

    def _loadBackward(self, nextLine):
        geo = self.geometry
        if geo.numberOfProfiles == 0:
            return
        for _ in range(geo.spuriousDataLines):
            nextLine()  # discard
        dataLine = None
        with alive_bar(geo.numberOfProfiles, force_tty=True,
                       title='Backward', theme='smooth',
                       elapsed_end=True, stats_end=True, length=30) as bar:
            for p in range(geo.numberOfProfiles):
                for i in range(geo.numberOfDataPoints):
                    if i < geo.backwardProfileLengths[p]:
                        dataLine = nextLine()
                    # backward points are stored in reverse order
                    position = (p + 1) * geo.numberOfDataPoints - i - 1
                    self.topography.insertLine(dataLine, position, ScanDirection.Backward)
                bar()

    def applyNLcorrection(self, empiricalAmplitude=None):
        """
        Corrects the surface height channel for the interferometer
        nonlinearities using the Z quadrature signals (F4, F5).
        Only the height is corrected, the LX, LY, LZ channels are not.

        Parameters
        ----------
        empiricalAmplitude: float, optional
            The Dai correction amplitude in m, estimated if None

        Returns
        -------
        applied: bool
            True if at least one scan direction was corrected
        """
        if self.nlCorrectionApplied:
            return True
        if not all(self.columnPresent(s) for s in (HEIGHT, SIN_Z, COS_Z)):
            logger.warning('Height or Z quadrature signals not present, NL correction not possible')
            return False

        column = self.getColumnIndexFor(HEIGHT)
        typeFor = {ScanDirection.Forward: TopographyProcessType.ForwardOnly,
                   ScanDirection.Backward: TopographyProcessType.BackwardOnly}
        for direction, processType in typeFor.items():
            if not self.topography.hasData(direction):
                continue
            nl = NLCorrection(self.extractProfile(HEIGHT, 0, processType),
                              self.extractProfile(SIN_Z, 0, processType),
                              self.extractProfile(COS_Z, 0, processType),
                              empiricalAmplitude)
            self.nlStatus[direction] = nl.status
            if nl.status == CorrectionStatus.Corrected:
                self.topography.replaceColumn(column, nl.correctedLength, direction)
                self.nlCorrectionApplied = True
                self.nlCorrectionSpan = max(self.nlCorrectionSpan, nl.correctionSpan)
            logger.info(f'{direction.name} NL correction: {nl.status.name}')
        return self.nlCorrectionApplied

    @property
    def fieldCenter(self):
        """(x, y, z) center of the scan field from the LX, LY, LZ channels, NaN if missing"""
        center = []
        for sym in ('LX', 'LY'):
            if self.columnPresent(sym):
                data = self.extractProfile(sym, 0, TopographyProcessType.ForwardOnly)
                center.append((data[0] + data[-1]) / 2.0 if data.size else np.nan)
            else:
                center.append(np.nan)
        if self.columnPresent('LZ'):
            data = self.extractProfile('LZ', 0, TopographyProcessType.ForwardOnly)
            center.append(data[data.size // 2] if data.size else np.nan)
        else:
            center.append(np.nan)
        return tuple(center)

    def toProfile(self, column, profileIndex, processType: TopographyProcessType):
        """
        Extracts a single profile as a profile.Profile object

        Returns
        -------
        prf: profile.Profile
            X in m from geometry.deltaX
        """
        z = self.extractProfile(column, profileIndex, processType)
        prf = profile.Profile()
        prf.setValues(np.arange(z.size) * self.geometry.deltaX, z, bplt=False)
        prf.name = f'{column} #{profileIndex} {processType.name}'
        pred = self.getPredicateFor(column)
        if pred is not None: prf.unit = pred.unit
        return prf

    def toSurface(self, column, processType: TopographyProcessType):
        """
        Extracts all profiles of a column as a surface.Surface object,
        one row of Z per profile
        """
        geo = self.geometry
        z = self.extractProfile(column, 0, processType)
        sur = surface.Surface()
        sur.setValues(np.arange(geo.numberOfDataPoints) * geo.deltaX,
                      np.arange(geo.numberOfProfiles) * geo.deltaY,
                      z.reshape(geo.numberOfProfiles, geo.numberOfDataPoints),
                      bplt=False)
        sur.name = f'{column} {processType.name}'
        pred = self.getPredicateFor(column)
        if pred is not None: sur.unit = pred.unit
        return sur
