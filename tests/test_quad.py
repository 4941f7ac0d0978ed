import numpy as np
import pytest

from nmmfile.quad import Quad, toQuads, phiDeg


def test_radius_and_phase_use_cos_as_first_atan2_argument() -> None:
    q = Quad(0.0, 2.0)
    assert q.radius == pytest.approx(2.0)
    assert q.phi == pytest.approx(np.pi / 2)
    assert q.phiDeg == pytest.approx(90.0)


def test_from_polar_in_degrees_matches_radians() -> None:
    a = Quad.fromPolar(1.5, 30, unit='deg')
    b = Quad.fromPolar(1.5, np.pi / 6)
    assert a.sin == pytest.approx(b.sin)
    assert a.cos == pytest.approx(b.cos)
    assert a.sin == pytest.approx(1.5 * np.cos(np.pi / 6))
    assert a.phiDeg == pytest.approx(30.0)


def test_from_polar_rejects_unknown_unit() -> None:
    with pytest.raises(ValueError):
        Quad.fromPolar(1.0, 1.0, unit='grad')


def test_quad_is_immutable() -> None:
    q = Quad(1.0, 0.0)
    with pytest.raises(AttributeError):
        q.sin = 2.0


def test_to_quads_and_vector_phase() -> None:
    quads = toQuads([1.0, 0.0], [0.0, -1.0])
    assert quads == [Quad(1.0, 0.0), Quad(0.0, -1.0)]
    assert np.allclose(phiDeg(np.array([1.0, 0.0]), np.array([0.0, -1.0])), [0.0, -90.0])
