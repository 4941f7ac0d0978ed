"""
--------
Package for the reduction of SIOS NMM scan data

Containers
--------
- profile
- surface
- topography: forward / backward storage of all the scan channels

>>> sd = scan.ScanData(geometry, fwdLines, bwdLines)
>>> sd.applyNLcorrection()
>>> sur = sd.toSurface('-LZ+AZ', topography.TopographyProcessType.Average)

Processings
--------
    - nlcorrection: Heydemann and Dai correction of the interferometer nonlinearities
    - leveling: reference values, least squares line / plane leveling
    - scan: column layout, direction status, loading and correction of whole scans

Structure
---------

```mermaid
graph RL;
    A[nmmfile.scan]--> B & C & D & E;
    B[nmmfile.nlcorrection]--> F[nmmfile.quad];
    C[nmmfile.topography];
    D[nmmfile.surface]--> E[nmmfile.profile];
    G[nmmfile.leveling]--> D & E;
```

Dependencies
------------
This package depends on the following packages
- numpy
- scipy
- matplotlib
- alive_progress
- tabulate

To install all packages run:
>>> pip install -e .

The physical constants and plot options are in Rcs.json, see funct.Rc.
"""

__docformat__ = 'numpy'
