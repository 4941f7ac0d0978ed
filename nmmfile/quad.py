"""
'nmmfile.quad'
- value type for one quadrature sample (sin, cos) of a homodyne interferometer
- vectorized radius / phase helpers used by the nonlinearity corrections

Notes
-----
By convention of the instrument the phase is atan2(cos, sin), the cos
signal is the first argument.

@author: Michael Matus
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Quad:
    """One (sin, cos) pair of an interferometer channel"""
    sin: float
    cos: float

    @property
    def radius(self):
        return np.hypot(self.sin, self.cos)

    @property
    def phi(self):
        return np.arctan2(self.cos, self.sin)

    @property
    def phiDeg(self):
        return self.phi * 180 / np.pi

    @classmethod
    def fromPolar(cls, radius, angle, unit='rad'):
        """
        Creates a sample from its polar representation

        Parameters
        ----------
        radius: float
            The radius of the sample
        angle: float
            The phase of the sample
        unit: str
            'rad' or 'deg', the unit of angle

        Returns
        -------
        quad: Quad
            The sample with sin = r cos(angle) and cos = r sin(angle)
        """
        if unit == 'deg':
            angle = np.deg2rad(angle)
        elif unit != 'rad':
            raise ValueError(f'{unit} is not a valid angle unit')
        return cls(float(radius * np.cos(angle)), float(radius * np.sin(angle)))


def radius(sin, cos):
    return np.hypot(sin, cos)


def phi(sin, cos):
    return np.arctan2(cos, sin)


def phiDeg(sin, cos):
    return np.rad2deg(phi(sin, cos))


def toQuads(sin, cos):
    """Packs two signal arrays into a list of Quad samples"""
    return [Quad(float(s), float(c)) for s, c in zip(sin, cos)]
