"""
'nmmfile.nlcorrection'
- compensation of periodic nonlinearities of homodyne laser interferometers
    - Heydemann: 2nd order (elliptical) correction by a conic least squares fit
    - Dai: 4th order (circle squashing) correction
    - NLCorrection: the two corrections applied one after the other

Notes
-----
To have an ideal circular Lissajous trajectory the interferometer signals
(sin, cos) should have zero offset, identical amplitudes and 90 deg phase
difference. Deviations lead to an elliptical trajectory, on the NMM-1 a
further 4th order contribution is present.
The whole calculation is performed when the objects are created, the results
are exposed as attributes. When no correction is possible the corrected length
is a copy of the raw length and the status tells why.

Example
-------
>>> from nmmfile import nlcorrection
>>> nl = nlcorrection.NLCorrection(height, f4, f5)
>>> nl.status, nl.correctionSpan
>>> corrected = nl.correctedLength

@author: Michael Matus, Andrea Giura
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Union

import numpy as np
from scipy import linalg
import matplotlib.pyplot as plt

from nmmfile import funct
from nmmfile.funct import options, rcs
from nmmfile.quad import Quad, toQuads, radius, phi, phiDeg

logger = logging.getLogger(__name__)


class CorrectionStatus(Enum):
    Unknown = 0
    Uncorrected = 1
    UncorrectedInconsistentData = 2
    UncorrectedTooFewData = 3
    UncorrectedRangeTooSmall = 4
    Corrected = 5


FAILURES = (CorrectionStatus.UncorrectedInconsistentData,
            CorrectionStatus.UncorrectedTooFewData,
            CorrectionStatus.UncorrectedRangeTooSmall)


@dataclass(frozen=True)
class EllipseParameters:
    """The 5 parameters of an ellipse in the plane, the defaults give a 0-correction"""
    offsetX: float = 0.0
    offsetY: float = 0.0
    phase: float = 0.0
    amplitude: float = 1.0
    amplitudeRelation: float = 1.0

    def isFinite(self):
        return bool(np.all(np.isfinite([self.offsetX, self.offsetY, self.phase,
                                        self.amplitude, self.amplitudeRelation])))


@dataclass
class CorrectionResult:
    status: CorrectionStatus
    correctedLength: np.ndarray
    correctedSin: np.ndarray
    correctedCos: np.ndarray
    correctionSpan: float = 0.0

    @property
    def correctedSignal(self):
        """The corrected quadrature signal as a list of Quad"""
        return toQuads(self.correctedSin, self.correctedCos)


def _asArray(values):
    return np.array(values, dtype=float).ravel()


def _consistent(rawData, sinValues, cosValues):
    return sinValues.size == cosValues.size and sinValues.size == rawData.size


def _finite(rawData, sinValues, cosValues):
    return np.isfinite(rawData) & np.isfinite(sinValues) & np.isfinite(cosValues)


#################
# HEYDEMANN     #
#################
def fitEllipse(sin, cos):
    """
    Least squares fit of a conic A s^2 + B c^2 + C s c + D s + E c = 1

    Parameters
    ----------
    sin: np.array
        The sin signal of the interferometer
    cos: np.array
        The cos signal of the interferometer

    Returns
    -------
    params: EllipseParameters
        The parameters of the fitted ellipse, they are not finite if the
        fitted conic is not an ellipse

    Raises
    ------
    numpy.linalg.LinAlgError
        If the normal matrix is singular (degenerate data)
    """
    s = np.asarray(sin, dtype=float)
    c = np.asarray(cos, dtype=float)
    M = np.vstack((s * s, c * c, s * c, s, c))  # 5 x n design matrix
    Q = M @ M.T
    T = M @ np.ones(s.size)
    A, B, C, D, E = linalg.solve(Q, T)

    with np.errstate(invalid='ignore', divide='ignore'):
        phase = np.arcsin(C / np.sqrt(4.0 * A * B))
        r = np.sqrt(B / A)
        p = (2.0 * B * D - E * C) / (C * C - 4.0 * A * B)
        q = (2.0 * A * E - D * C) / (C * C - 4.0 * A * B)
        cos2 = np.cos(phase) ** 2
        x1 = (p * p + r * r * q * q + 2.0 * r * p * q * np.sin(phase)) / cos2
        x2 = 1.0 / (A * cos2)
        amplitude = np.sqrt(x1 + x2)

    return EllipseParameters(offsetX=float(p), offsetY=float(q), phase=float(phase),
                             amplitude=float(amplitude), amplitudeRelation=float(r))


def correctQuadrature(sin, cos, params: EllipseParameters):
    """
    Maps the raw quadrature signals onto the circle defined by params

    Returns
    -------
    (sinc, cosc): (np.array, np.array)
        The corrected signals
    """
    sinc = np.asarray(sin, dtype=float) - params.offsetX
    cosc = sinc * np.sin(params.phase) + \
        params.amplitudeRelation * (np.asarray(cos, dtype=float) - params.offsetY) / np.cos(params.phase)
    return sinc, cosc


def correctSample(sample: Quad, params: EllipseParameters):
    """Applies the ellipse correction to a single sample"""
    sinc, cosc = correctQuadrature(sample.sin, sample.cos, params)
    return Quad(float(sinc), float(cosc))


def heydemannDeviation(sin, cos, params: EllipseParameters, lambda2=None, wrapLimit=None):
    """
    Length deviation produced by the elliptical distortion

    Parameters
    ----------
    sin, cos: np.array
        The raw quadrature signals
    params: EllipseParameters
        The fitted ellipse
    lambda2: float, optional
        The half wavelength (fringe period) in m, by default from rcs
    wrapLimit: float, optional
        Deviations beyond +- wrapLimit are folded back by lambda2, by default from rcs

    Returns
    -------
    deviation: np.array
        The deviation in m for every sample
    """
    if lambda2 is None:
        lambda2 = rcs.params['lambda2']
    if wrapLimit is None:
        wrapLimit = rcs.params['wrapLimit']
    sinc, cosc = correctQuadrature(sin, cos, params)
    deviation = (lambda2 / (2.0 * np.pi)) * (phi(sin, cos) - phi(sinc, cosc))
    deviation = np.where(deviation > wrapLimit, deviation - lambda2, deviation)
    deviation = np.where(deviation < -wrapLimit, deviation + lambda2, deviation)
    return deviation


class Heydemann:
    """
    Elliptical (2nd order) nonlinearity correction

    Parameters
    ----------
    rawData: np.array
        The length values in m to be corrected (-LZ+AZ)
    sinValues: np.array
        The respective sin signal of the interferometer
    cosValues: np.array
        The respective cos signal of the interferometer

    Attributes
    ----------
    status: CorrectionStatus
    correctedLength: np.array
    correctedSin, correctedCos: np.array
        The back transformed interferometer signals
    correctionSpan: float
        The span of the applied corrections in m
    parameters: EllipseParameters
        The fitted ellipse (identity if not corrected)
    """
    def __init__(self, rawData, sinValues, cosValues):
        self.status = CorrectionStatus.Unknown
        self.correctionSpan = 0.0
        self.parameters = EllipseParameters()
        self._performCorrection(_asArray(rawData), _asArray(sinValues), _asArray(cosValues))

    def _performCorrection(self, rawData, sinValues, cosValues):
        self.status = CorrectionStatus.Uncorrected
        self.correctedLength = rawData.copy()
        self.correctedSin = sinValues.copy()
        self.correctedCos = cosValues.copy()

        finiteRaw = rawData[np.isfinite(rawData)]
        span = np.ptp(finiteRaw) if finiteRaw.size > 0 else 0.0
        if span < rcs.params['lambda2']:
            self.status = CorrectionStatus.UncorrectedRangeTooSmall
            return
        if not _consistent(rawData, sinValues, cosValues):
            self.status = CorrectionStatus.UncorrectedInconsistentData
            return
        # samples not written by a truncated scan are NaN, they pass through unchanged
        valid = _finite(rawData, sinValues, cosValues)
        if np.count_nonzero(valid) < rcs.params['minFitPoints']:
            self.status = CorrectionStatus.UncorrectedTooFewData
            return
        sin, cos = sinValues[valid], cosValues[valid]

        try:
            params = fitEllipse(sin, cos)
        except (np.linalg.LinAlgError, ValueError) as e:
            logger.warning(f'Ellipse fit failed ({e}), data left uncorrected')
            return
        if not params.isFinite():
            logger.warning(f'Fitted conic is not an ellipse {params}, data left uncorrected')
            return

        self.parameters = params
        deviation = heydemannDeviation(sin, cos, params)
        self.correctedLength[valid] = rawData[valid] - deviation  # sign valid only for rawData = -LZ+AZ
        self.correctedSin[valid], self.correctedCos[valid] = correctQuadrature(sin, cos, params)
        self.correctionSpan = float(np.max(deviation) - np.min(deviation))
        self.status = CorrectionStatus.Corrected
        logger.debug(f'Heydemann {params}, span {self.correctionSpan:.3e} m')

    @property
    def result(self):
        return CorrectionResult(self.status, self.correctedLength,
                                self.correctedSin, self.correctedCos, self.correctionSpan)


#################
# DAI           #
#################
@dataclass(frozen=True)
class Supplied:
    """Dai amplitude given by the user (empirical value) in m"""
    value: float


@dataclass(frozen=True)
class Estimated:
    """Dai amplitude estimated from the deformation of the Lissajous circle"""


@dataclass(frozen=True)
class DefaultFallback:
    """Dai amplitude taken from rcs.params['defaultDaiCorrection']"""


AmplitudeSource = Union[Supplied, Estimated, DefaultFallback]


def _isNear(angles, targets, eps):
    return np.any(np.abs(np.subtract.outer(angles, targets)) < eps, axis=-1)


def estimateCircleDeformation(sin, cos, halfWidth=None):
    """
    Compares the radius of the samples close to the axes with the radius
    of the samples close to the diagonals (medians)

    Parameters
    ----------
    sin, cos: np.array
        The (ellipse corrected) quadrature signals
    halfWidth: float, optional
        Half width in degrees of the angular bins, by default from rcs

    Returns
    -------
    absoluteDeviation: float
        mean(median radii) - mean(axis radii)
    relativeDeviation: float
        absoluteDeviation divided by the mean radius of all samples
    """
    if halfWidth is None:
        halfWidth = rcs.params['binHalfWidth']
    r = radius(np.asarray(sin, dtype=float), np.asarray(cos, dtype=float))
    ang = phiDeg(np.asarray(sin, dtype=float), np.asarray(cos, dtype=float))
    keep = np.isfinite(r)
    r, ang = r[keep], ang[keep]

    axis = _isNear(ang, [0, 90, 180, -90, -180], halfWidth)
    median = _isNear(ang, [45, 135, -45, -135], halfWidth)
    if not np.any(axis) or not np.any(median):
        logger.warning('No samples close to the axes or medians, circle deformation set to 0')
        return 0.0, 0.0

    absoluteDeviation = float(np.mean(r[median]) - np.mean(r[axis]))
    relativeDeviation = absoluteDeviation / float(np.mean(r))
    return absoluteDeviation, relativeDeviation


def daiCorrection(sin, cos, amplitude):
    """Length correction of the 4th order nonlinearity"""
    return -amplitude * np.sin(4 * phi(sin, cos))


class Dai:
    """
    4th order nonlinearity correction

    Parameters
    ----------
    rawData: np.array
        The length values in m, usually already Heydemann corrected
    sinValues, cosValues: np.array
        The respective quadrature signals
    source: AmplitudeSource
        How the correction amplitude is obtained, see Supplied, Estimated
        and DefaultFallback

    Notes
    -----
    The quadrature signals are corrected only when the amplitude is
    estimated, otherwise the absolute deviation is unknown and the signals
    pass through unchanged.
    """
    def __init__(self, rawData, sinValues, cosValues, source: AmplitudeSource = Estimated()):
        self.status = CorrectionStatus.Unknown
        self.correctionAmplitude = 0.0
        self.absoluteDeviation = None
        self.source = source
        self._performCorrection(_asArray(rawData), _asArray(sinValues), _asArray(cosValues))

    @property
    def correctionSpan(self):
        return 2 * self.correctionAmplitude

    def _amplitudeFrom(self, sinValues, cosValues):
        if isinstance(self.source, Supplied):
            return float(self.source.value)
        if isinstance(self.source, DefaultFallback):
            return float(rcs.params['defaultDaiCorrection'])
        if isinstance(self.source, Estimated):
            self.absoluteDeviation, relative = estimateCircleDeformation(sinValues, cosValues)
            return rcs.params['empiricalNLfactor'] * relative
        raise ValueError(f'{self.source} is not a valid amplitude source')

    def _performCorrection(self, rawData, sinValues, cosValues):
        self.status = CorrectionStatus.Uncorrected
        self.correctedLength = rawData.copy()
        self.correctedSin = sinValues.copy()
        self.correctedCos = cosValues.copy()
        if not _consistent(rawData, sinValues, cosValues):
            self.status = CorrectionStatus.UncorrectedInconsistentData
            return

        valid = _finite(rawData, sinValues, cosValues)
        sin, cos = sinValues[valid], cosValues[valid]
        self.correctionAmplitude = self._amplitudeFrom(sin, cos)
        self.correctedLength[valid] = rawData[valid] + daiCorrection(sin, cos, self.correctionAmplitude)
        if self.absoluteDeviation is not None:
            angle = phi(sin, cos)
            r = radius(sin, cos) - self.absoluteDeviation * np.sin(4 * angle + np.pi / 4)
            self.correctedSin[valid] = r * np.cos(angle)
            self.correctedCos[valid] = r * np.sin(angle)
        self.status = CorrectionStatus.Corrected
        logger.debug(f'Dai amplitude {self.correctionAmplitude:.3e} m ({type(self.source).__name__})')

    @property
    def result(self):
        return CorrectionResult(self.status, self.correctedLength,
                                self.correctedSin, self.correctedCos, self.correctionSpan)


#################
# PIPELINE      #
#################
class NLCorrection:
    """
    Heydemann correction followed by the Dai correction of one length channel

    Parameters
    ----------
    rawData: np.array
        The length values in m to be corrected (-LZ+AZ)
    sinValues, cosValues: np.array
        The respective quadrature signals
    empiricalAmplitude: float, optional
        If given it is used as Dai amplitude, otherwise the amplitude is
        estimated (Heydemann corrected) or the default one is used

    Attributes
    ----------
    status: CorrectionStatus
        Status of the Heydemann stage, Uncorrected becomes Corrected if the
        Dai stage was applied
    correctedLength: np.array
    heydemannSpan, daiSpan: float
        The spans of the two stages in m
    """
    def __init__(self, rawData, sinValues, cosValues, empiricalAmplitude=None):
        self.rawData = _asArray(rawData)
        self.sinValues = _asArray(sinValues)
        self.cosValues = _asArray(cosValues)
        self.heydemann = None
        self.dai = None
        self.heydemannSpan = 0.0
        self.daiSpan = 0.0
        self.correctedLength = self.rawData.copy()
        self.correctedSin = self.sinValues.copy()
        self.correctedCos = self.cosValues.copy()
        self.status = CorrectionStatus.Unknown
        self._performCorrection(empiricalAmplitude)

    @property
    def correctionSpan(self):
        return self.heydemannSpan + self.daiSpan

    def _performCorrection(self, empiricalAmplitude):
        if not _consistent(self.rawData, self.sinValues, self.cosValues):
            self.status = CorrectionStatus.UncorrectedInconsistentData
            logger.info(f'NL correction not applied: {self.status.name}')
            return

        self.heydemann = Heydemann(self.rawData, self.sinValues, self.cosValues)
        self.status = self.heydemann.status
        # classified failures keep the raw data, the Dai stage is not run
        if self.status in FAILURES:
            logger.info(f'NL correction not applied: {self.status.name}')
            return
        self.heydemannSpan = self.heydemann.correctionSpan

        if empiricalAmplitude is not None:
            source = Supplied(empiricalAmplitude)
        elif self.status == CorrectionStatus.Corrected:
            source = Estimated()
        else:
            source = DefaultFallback()
        self.dai = Dai(self.heydemann.correctedLength,
                       self.heydemann.correctedSin,
                       self.heydemann.correctedCos,
                       source)
        self.daiSpan = self.dai.correctionSpan
        self.correctedLength = self.dai.correctedLength
        self.correctedSin = self.dai.correctedSin
        self.correctedCos = self.dai.correctedCos
        if self.status == CorrectionStatus.Uncorrected and self.dai.status == CorrectionStatus.Corrected:
            self.status = CorrectionStatus.Corrected
        logger.info(f'NL correction {self.status.name}: Heydemann span {self.heydemannSpan:.3e} m, '
                    f'Dai span {self.daiSpan:.3e} m')

    @property
    def result(self):
        return CorrectionResult(self.status, self.correctedLength,
                                self.correctedSin, self.correctedCos, self.correctionSpan)

    #################
    # PLOT SECTION  #
    #################
    @options(bplt=rcs.params['bpLis'], save=rcs.params['spLis'])
    def pltLissajous(self):
        """Plots the raw and the corrected Lissajous figures"""
        fig, (ax, bx) = plt.subplots(nrows=1, ncols=2)
        ax.plot(self.sinValues, self.cosValues, ',', color='teal')
        ax.set_title('Raw')
        bx.plot(self.correctedSin, self.correctedCos, ',', color='red')
        bx.set_title(self.status.name)
        for a in [ax, bx]:
            a.set_aspect('equal')
        funct.persFig(
            [ax, bx],
            gridcol='grey',
            xlab='sin',
            ylab='cos'
        )
