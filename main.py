import logging

import numpy as np
import matplotlib.pyplot as plt
from tabulate import tabulate

from nmmfile import scan, funct, leveling
from nmmfile.topography import TopographyProcessType

LAMBDA2 = funct.rcs.params['lambda2']


def syntheticLines(nProfiles, nPoints, backward=False, spurious=0):
    """
    Data lines of a tilted scan with distorted Z quadrature signals
    columns: LX LY LZ AZ F4 F5 -LZ+AZ XYvec
    """
    rng = np.random.default_rng(1)
    lines = []
    for _ in range(spurious):
        lines.append(list(rng.normal(size=8)))
    for p in range(nProfiles):
        idx = range(nPoints - 1, -1, -1) if backward else range(nPoints)
        for i in idx:
            x, y = i * 1e-6, p * 1e-6
            z = 2e-7 * i + 1e-7 * p
            ph = 2 * np.pi * z / LAMBDA2
            f4 = 0.05 + 0.9 * np.cos(ph)
            f5 = -0.03 + 1.1 * np.sin(ph + 0.05)
            lines.append([x, y, z, 0.0, f4, f5, z, np.hypot(x, y)])
    return lines


# main
if __name__ == '__main__':
    funct.setupLogging(logging.INFO)
    plt.rcParams["figure.autolayout"] = True
    plt.rcParams["figure.figsize"] = (12, 9)

    nProf, nPts = 20, 200
    mask = 0x1 | 0x2 | 0x4 | 0x100 | 0x200000 | 0x400000
    geo = scan.ScanGeometry.fromProfileLengths(mask, [nPts] * nProf, [nPts] * (nProf + 1),
                                               deltaX=1e-6, deltaY=1e-6)
    print(geo.table())

    sd = scan.ScanData(geo,
                       syntheticLines(nProf, nPts),
                       syntheticLines(nProf, nPts, backward=True, spurious=nPts))
    sd.applyNLcorrection()

    sur = sd.toSurface('height', TopographyProcessType.Average)
    description = leveling.SurfaceLeveling.level(sur, leveling.ReferenceTo.LsqPositive)

    print(tabulate([['NL correction applied', sd.nlCorrectionApplied],
                    ['NL correction span [m]', sd.nlCorrectionSpan],
                    ['Field center [m]', sd.fieldCenter],
                    ['Leveling', description]]))
    sur.pltC()
