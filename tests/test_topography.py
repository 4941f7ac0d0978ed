import numpy as np
import pytest

from nmmfile import topography as tp
from nmmfile.topography import ScanDirection, ScanDirectionStatus, TopographyProcessType


def _filled(status, nCol=3, nProf=2, nPts=4, xyColumn=-1):
    """Forward rows hold the row index, backward rows 10 times the row index"""
    td = tp.TopographyData(nCol, nProf, nPts, status, xyColumn)
    for pos in range(nProf * nPts):
        td.insertLine([pos + c * 100 for c in range(nCol)], pos, ScanDirection.Forward)
        td.insertLine([10 * pos + c * 100 for c in range(nCol)], pos, ScanDirection.Backward)
    return td


def test_dimensions() -> None:
    td = tp.TopographyData(5, 10, 100, ScanDirectionStatus.ForwardOnly)
    assert td.numberTotalPoints == 1000
    assert td.hasData(ScanDirection.Forward)
    assert not td.hasData(ScanDirection.Backward)


def test_negative_dimensions_are_rejected() -> None:
    with pytest.raises(ValueError):
        tp.TopographyData(3, -1, 10, ScanDirectionStatus.ForwardOnly)


@pytest.mark.parametrize('status, fwd, bwd', [
    (ScanDirectionStatus.Unknown, False, False),
    (ScanDirectionStatus.NoData, False, False),
    (ScanDirectionStatus.ForwardOnly, True, False),
    (ScanDirectionStatus.ForwardAndBackward, True, True),
    (ScanDirectionStatus.ForwardAndBackwardJustified, True, True),
])
def test_allocated_directions_follow_status(status, fwd, bwd) -> None:
    td = tp.TopographyData(2, 2, 2, status)
    assert td.hasData(ScanDirection.Forward) == fwd
    assert td.hasData(ScanDirection.Backward) == bwd
    assert not td.hasData(ScanDirection.Unknown)


def test_single_and_all_profiles() -> None:
    td = _filled(ScanDirectionStatus.ForwardOnly)
    assert np.array_equal(td.extractProfile(0, 1, TopographyProcessType.ForwardOnly), [0, 1, 2, 3])
    assert np.array_equal(td.extractProfile(0, 2, TopographyProcessType.ForwardOnly), [4, 5, 6, 7])
    assert np.array_equal(td.extractProfile(2, 0, TopographyProcessType.ForwardOnly),
                          np.arange(8) + 200)


def test_unpopulated_rows_are_nan() -> None:
    td = tp.TopographyData(2, 1, 3, ScanDirectionStatus.ForwardOnly)
    td.insertLine([1.0, 2.0], 1, ScanDirection.Forward)
    prf = td.extractProfile(1, 1, TopographyProcessType.ForwardOnly)
    assert np.isnan(prf[0]) and np.isnan(prf[2])
    assert prf[1] == 2.0


def test_invalid_insertions_are_ignored() -> None:
    td = tp.TopographyData(2, 1, 3, ScanDirectionStatus.ForwardOnly)
    td.insertLine([1.0, 2.0], 3, ScanDirection.Forward)  # out of range
    td.insertLine([1.0, 2.0], -1, ScanDirection.Forward)
    td.insertLine([1.0, 2.0, 3.0], 0, ScanDirection.Forward)  # wrong length
    td.insertLine([1.0, 2.0], 0, ScanDirection.Backward)  # not allocated
    td.insertLine(None, 0, ScanDirection.Forward)
    assert np.all(np.isnan(td.extractProfile(0, 0, TopographyProcessType.ForwardOnly)))


def test_process_types_combine_directions() -> None:
    td = _filled(ScanDirectionStatus.ForwardAndBackward)
    fwd = np.array([4, 5, 6, 7])
    bwd = 10 * fwd
    assert np.array_equal(td.extractProfile(0, 2, TopographyProcessType.BackwardOnly), bwd)
    assert np.allclose(td.extractProfile(0, 2, TopographyProcessType.Average), (fwd + bwd) / 2)
    assert np.allclose(td.extractProfile(0, 2, TopographyProcessType.Difference), fwd - bwd)
    assert np.all(np.isnan(td.extractProfile(0, 2, TopographyProcessType.NoProcessing)))


def test_all_profiles_average_is_mean_of_directions() -> None:
    td = _filled(ScanDirectionStatus.ForwardAndBackward, xyColumn=1)
    for column in (0, 1):
        fwd = td.extractProfile(column, 0, TopographyProcessType.ForwardOnly)
        bwd = td.extractProfile(column, 0, TopographyProcessType.BackwardOnly)
        assert np.allclose(td.extractProfile(column, 0, TopographyProcessType.Average), (fwd + bwd) / 2)
        assert np.allclose(td.extractProfile(column, 0, TopographyProcessType.Difference), fwd - bwd)
    assert np.allclose(td.extractProfile(0, 0, TopographyProcessType.Average), 5.5 * np.arange(8))
    # the whole backward XY vector is reversed, not profile by profile
    assert np.array_equal(td.extractProfile(1, 0, TopographyProcessType.BackwardOnly),
                          100 + 10 * np.arange(7, -1, -1))
    assert np.allclose(td.extractProfile(1, 0, TopographyProcessType.Average),
                       (np.arange(8) + 100 + 100 + 10 * np.arange(7, -1, -1)) / 2)


def test_missing_backward_gives_nan() -> None:
    td = _filled(ScanDirectionStatus.ForwardOnly)
    assert np.all(np.isnan(td.extractProfile(0, 1, TopographyProcessType.BackwardOnly)))
    assert np.all(np.isnan(td.extractProfile(0, 1, TopographyProcessType.Average)))
    assert td.extractProfile(0, 0, TopographyProcessType.Difference).size == 8


@pytest.mark.parametrize('column, profileIndex, size', [
    (0, 3, 4),  # profile index beyond numberOfProfiles
    (0, -1, 4),
    (5, 1, 4),  # invalid column
    (-1, 0, 8),  # invalid column, all profiles
])
def test_invalid_requests_give_nan(column, profileIndex, size) -> None:
    td = _filled(ScanDirectionStatus.ForwardAndBackward)
    prf = td.extractProfile(column, profileIndex, TopographyProcessType.ForwardOnly)
    assert prf.size == size
    assert np.all(np.isnan(prf))


def test_backward_xy_column_is_reversed() -> None:
    td = _filled(ScanDirectionStatus.ForwardAndBackward, xyColumn=1)
    assert np.array_equal(td.extractProfile(1, 1, TopographyProcessType.BackwardOnly),
                          [130, 120, 110, 100])
    assert np.array_equal(td.extractProfile(1, 1, TopographyProcessType.ForwardOnly),
                          [100, 101, 102, 103])
    # other columns keep their order
    assert np.array_equal(td.extractProfile(0, 1, TopographyProcessType.BackwardOnly),
                          [0, 10, 20, 30])


def test_extracted_profiles_are_copies() -> None:
    td = _filled(ScanDirectionStatus.ForwardOnly)
    prf = td.extractProfile(0, 1, TopographyProcessType.ForwardOnly)
    prf[:] = -1
    assert td.extractProfile(0, 1, TopographyProcessType.ForwardOnly)[0] == 0


def test_replace_column() -> None:
    td = _filled(ScanDirectionStatus.ForwardAndBackward)
    td.replaceColumn(0, np.ones(8), ScanDirection.Backward)
    assert np.array_equal(td.extractProfile(0, 0, TopographyProcessType.BackwardOnly), np.ones(8))
    assert np.array_equal(td.extractProfile(0, 0, TopographyProcessType.ForwardOnly), np.arange(8))

    td.replaceColumn(0, np.ones(7), ScanDirection.Forward)  # wrong length
    td.replaceColumn(9, np.ones(8), ScanDirection.Forward)  # invalid column
    assert np.array_equal(td.extractProfile(0, 0, TopographyProcessType.ForwardOnly), np.arange(8))
