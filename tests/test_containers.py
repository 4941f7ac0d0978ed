import numpy as np
import pytest

from nmmfile import profile, surface


def test_profile_txt_roundtrip(tmp_path) -> None:
    prf = profile.Profile()
    prf.setValues(np.arange(4) * 1e-6, [1e-9, np.nan, 3e-9, 4e-9], bplt=False)
    prf.name = 'line'
    name = prf.saveTxt(str(tmp_path))
    assert name.endswith('line.txt')

    other = profile.Profile()
    other.openTxt(name, bplt=False)
    assert other.name == 'line.txt'
    assert np.allclose(other.X, prf.X)
    assert np.allclose(other.Z, prf.Z, equal_nan=True)


def test_surface_shape_is_checked() -> None:
    sur = surface.Surface()
    with pytest.raises(Exception):
        sur.setValues(np.arange(3), np.arange(2), np.zeros((3, 2)), bplt=False)


def test_surface_grid_and_profiles(tmp_path) -> None:
    sur = surface.Surface()
    Z = np.arange(6.0).reshape(2, 3)
    sur.setValues([0, 1e-6, 2e-6], [0, 5e-6], Z, bplt=False)
    assert sur.X.shape == (2, 3)
    assert sur.rangeX == pytest.approx(2e-6)
    assert sur.rangeY == pytest.approx(5e-6)

    rows = sur.toProfiles('x')
    assert len(rows) == 2
    assert rows[1].name == 'Figure x1'
    assert np.array_equal(rows[1].Z, [3, 4, 5])
    cols = sur.toProfiles('y')
    assert len(cols) == 3
    assert np.array_equal(cols[0].X, [0, 5e-6])
    with pytest.raises(Exception):
        sur.toProfiles('z')

    data = np.loadtxt(sur.saveTxt(str(tmp_path / 'topo.dat')))
    assert data.shape == (6, 3)
    assert np.allclose(data[:, 2], Z.ravel())
