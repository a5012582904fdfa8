import numpy as np
import pandas as pd
import pytest


def _series(values, start=1960):
    return pd.Series(np.asarray(values, dtype=float), index=np.arange(start, start + len(values)))


def test_difference_drops_leading_years():
    from co2_forecaster_src.transform_utils import difference

    s = _series([1, 4, 9, 16, 25])
    d1 = difference(s, 1)
    d2 = difference(s, 2)

    assert len(d1) == 4 and len(d2) == 3
    assert list(d1.index) == [1961, 1962, 1963, 1964]
    assert d1.tolist() == [3.0, 5.0, 7.0, 9.0]
    assert d2.tolist() == [2.0, 2.0, 2.0]
    pd.testing.assert_series_equal(difference(s, 0), s)


def test_difference_rejects_bad_order_and_short_series():
    from co2_forecaster_src.transform_utils import difference

    with pytest.raises(ValueError):
        difference(_series([1, 2, 3]), 3)
    with pytest.raises(ValueError):
        difference(_series([1, 2]), 2)


@pytest.mark.parametrize("k", [0, 1, 2])
def test_undifference_restores_integer_valued_series_exactly(k):
    from co2_forecaster_src.transform_utils import difference, difference_initial_values, undifference

    s = _series([5, 8, 6, 11, 20, 19, 25, 40])
    restored = undifference(difference(s, k), difference_initial_values(s, k))

    pd.testing.assert_series_equal(restored, s)


def test_undifference_round_trip_on_float_series():
    from co2_forecaster_src.transform_utils import difference, difference_initial_values, undifference

    rng = np.random.default_rng(7)
    s = _series(1e6 + np.cumsum(np.cumsum(rng.normal(0, 1e3, size=57))))
    restored = undifference(difference(s, 2), difference_initial_values(s, 2))

    assert list(restored.index) == list(s.index)
    np.testing.assert_allclose(restored.to_numpy(), s.to_numpy(), rtol=1e-9)


def test_difference_levels_and_log_transform():
    from co2_forecaster_src.transform_utils import difference_levels, log_transform

    s = _series([1.0, np.e, np.e ** 2])
    levels = difference_levels(s, 2)
    assert sorted(levels) == [0, 1, 2]
    assert [len(levels[k]) for k in (0, 1, 2)] == [3, 2, 1]

    np.testing.assert_allclose(log_transform(s).to_numpy(), [0.0, 1.0, 2.0])
    with pytest.raises(ValueError):
        log_transform(_series([1.0, 0.0, 2.0]))
