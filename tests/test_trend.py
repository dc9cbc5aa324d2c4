"""
Tests for trend.py: regression, SMA, Bollinger bands and z-score.
"""

import math

import numpy as np
import pandas as pd
import pytest
from conftest import _candles

from quant_engine.analysis.trend import (
    bollinger_bands,
    linear_regression,
    simple_moving_average,
    z_score,
)

# ===========================================================================
# linear_regression
# ===========================================================================


class TestLinearRegression:
    def test_simple_ramp(self):
        line = linear_regression([1, 2, 3, 4, 5])
        assert line.slope == pytest.approx(1.0)
        assert line.intercept == pytest.approx(1.0)
        assert line.start_point == pytest.approx(1.0)
        assert line.end_point == pytest.approx(5.0)

    @pytest.mark.parametrize("series", [[], [7.0]])
    def test_fewer_than_two_points_is_none(self, series):
        assert linear_regression(series) is None

    def test_two_points_exact(self):
        line = linear_regression([10.0, 4.0])
        assert line.slope == pytest.approx(-6.0)
        assert line.end_point == pytest.approx(4.0)

    def test_flat_series_zero_slope(self):
        line = linear_regression([3.0] * 10)
        assert line.slope == pytest.approx(0.0)
        assert line.intercept == pytest.approx(3.0)

    def test_matches_numpy_polyfit(self, ohlcv_df):
        closes = ohlcv_df["Close"].to_numpy()
        slope, intercept = np.polyfit(np.arange(len(closes)), closes, 1)
        line = linear_regression(closes)
        assert line.slope == pytest.approx(slope)
        assert line.intercept == pytest.approx(intercept)


# ===========================================================================
# simple_moving_average
# ===========================================================================


class TestSimpleMovingAverage:
    def test_one_output_per_input(self, ohlcv_df):
        sma = simple_moving_average(ohlcv_df, period=20)
        assert len(sma) == len(ohlcv_df)

    def test_nan_until_window_fills(self):
        sma = simple_moving_average(_candles([1, 2, 3, 4, 5]), period=3)
        assert math.isnan(sma[0].value)
        assert math.isnan(sma[1].value)
        assert [p.value for p in sma[2:]] == pytest.approx([2.0, 3.0, 4.0])

    def test_time_carried_from_records(self):
        sma = simple_moving_average(_candles([1, 2, 3]), period=2)
        assert [p.time for p in sma] == [0, 1, 2]

    def test_time_carried_from_frame_index(self, short_ohlcv_df):
        sma = simple_moving_average(short_ohlcv_df, period=5)
        assert sma[-1].time == short_ohlcv_df.index[-1]

    def test_matches_pandas_rolling(self, ohlcv_df):
        expected = ohlcv_df["Close"].rolling(10).mean().iloc[-1]
        assert simple_moving_average(ohlcv_df, period=10)[-1].value == pytest.approx(expected)

    def test_period_longer_than_series_all_nan(self):
        sma = simple_moving_average(_candles([1, 2, 3]), period=10)
        assert all(math.isnan(p.value) for p in sma)

    def test_empty_input(self, empty_df):
        assert simple_moving_average(empty_df, period=3) == []

    def test_invalid_period_raises(self):
        with pytest.raises(ValueError):
            simple_moving_average(_candles([1, 2]), period=0)


# ===========================================================================
# bollinger_bands
# ===========================================================================


class TestBollingerBands:
    def test_skips_until_window_fills(self, short_ohlcv_df):
        bands = bollinger_bands(short_ohlcv_df, period=20)
        assert len(bands) == len(short_ohlcv_df) - 19
        assert bands[0].time == short_ohlcv_df.index[19]

    def test_ordering_invariant(self, ohlcv_df):
        for b in bollinger_bands(ohlcv_df, period=20, std_dev=2.0):
            assert b.upper >= b.basis >= b.lower

    def test_known_window(self):
        bands = bollinger_bands(_candles([2, 4, 4, 4, 5, 5, 7, 9]), period=8, std_dev=2.0)
        assert len(bands) == 1
        # population std of this classic sample is exactly 2
        assert bands[0].basis == pytest.approx(5.0)
        assert bands[0].upper == pytest.approx(9.0)
        assert bands[0].lower == pytest.approx(1.0)

    def test_symmetric_around_basis(self, short_ohlcv_df):
        for b in bollinger_bands(short_ohlcv_df, period=10, std_dev=1.5):
            assert b.upper - b.basis == pytest.approx(b.basis - b.lower)

    def test_flat_window_collapses(self):
        bands = bollinger_bands(_candles([5.0] * 10), period=5)
        for b in bands:
            assert b.upper == pytest.approx(5.0)
            assert b.lower == pytest.approx(5.0)

    def test_too_short_is_empty(self):
        assert bollinger_bands(_candles([1, 2, 3]), period=5) == []

    def test_accepts_dataframe_with_lowercase_columns(self):
        df = pd.DataFrame({"close": [1.0, 2.0, 3.0, 4.0]})
        bands = bollinger_bands(df, period=2, std_dev=1.0)
        assert [b.basis for b in bands] == pytest.approx([1.5, 2.5, 3.5])


# ===========================================================================
# z_score
# ===========================================================================


class TestZScore:
    def test_empty_history(self):
        assert z_score(100.0, []) == 0.0

    def test_zero_deviation(self):
        assert z_score(100.0, [5.0, 5.0, 5.0]) == 0.0

    def test_population_z(self):
        history = [2, 4, 4, 4, 5, 5, 7, 9]  # mean 5, std 2
        assert z_score(9.0, history) == pytest.approx(2.0)
        assert z_score(1.0, history) == pytest.approx(-2.0)
