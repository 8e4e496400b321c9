"""Tests for tone mapping operators."""

import pytest
import numpy as np

from lumenpath.tonemapping import (
    ToneMapper, ToneMappingOperator, LinearToneMapper, ReinhardToneMapper,
    create_tone_mapper, apply_gamma, luminance
)


class TestLinearToneMapper:
    """Tests for LinearToneMapper."""

    def test_name(self):
        assert LinearToneMapper().name == "Linear"

    def test_clamps_values(self):
        result = LinearToneMapper().apply(np.array([[[2.0, -0.5, 0.5]]]))
        np.testing.assert_array_almost_equal(result, [[[1.0, 0.0, 0.5]]])

    def test_preserves_valid_range(self):
        image = np.array([[[0.3, 0.5, 0.7]]])
        np.testing.assert_array_almost_equal(LinearToneMapper().apply(image), image)


class TestReinhardToneMapper:
    """Tests for ReinhardToneMapper."""

    def test_name_basic(self):
        assert ReinhardToneMapper().name == "Reinhard"

    def test_name_extended(self):
        assert ReinhardToneMapper(white_point=4.0).name == "Reinhard Extended"

    def test_basic_formula(self):
        result = ReinhardToneMapper().apply(np.array([[[0.0, 1.0, 3.0]]]))
        np.testing.assert_array_almost_equal(result, [[[0.0, 0.5, 0.75]]])

    def test_compresses_highlights_below_one(self):
        result = ReinhardToneMapper().apply(np.array([[[100.0, 1000.0, 1e6]]]))
        assert np.all(result < 1.0)

    def test_negative_input_clamped(self):
        result = ReinhardToneMapper().apply(np.array([[[-1.0, 0.0, 0.0]]]))
        assert result[0, 0, 0] == 0.0

    def test_extended_maps_white_point_to_one(self):
        result = ReinhardToneMapper(white_point=4.0).apply(np.array([[[4.0, 8.0, 0.0]]]))
        np.testing.assert_array_almost_equal(result, [[[1.0, 1.0, 0.0]]])

    def test_monotonic(self):
        values = np.linspace(0, 10, 50).reshape(1, 50, 1).repeat(3, axis=2)
        result = ReinhardToneMapper().apply(values)
        assert np.all(np.diff(result[0, :, 0]) > 0)

    def test_invalid_white_point(self):
        with pytest.raises(ValueError):
            ReinhardToneMapper(white_point=0.0)


class TestCreateToneMapper:
    """Tests for the tone mapper factory."""

    @pytest.mark.parametrize("operator, expected", [
        (ToneMappingOperator.LINEAR, LinearToneMapper),
        ("linear", LinearToneMapper),
        ("reinhard", ReinhardToneMapper),
        ("reinhard_extended", ReinhardToneMapper),
    ])
    def test_creates_operator(self, operator, expected):
        mapper = create_tone_mapper(operator)
        assert isinstance(mapper, ToneMapper)
        assert isinstance(mapper, expected)

    def test_extended_default_white_point(self):
        assert create_tone_mapper("reinhard_extended").white_point == 4.0

    def test_kwargs_forwarded(self):
        assert create_tone_mapper("reinhard_extended", white_point=2.0).white_point == 2.0

    def test_unknown_operator(self):
        with pytest.raises(ValueError):
            create_tone_mapper("aces")


class TestGamma:
    """Tests for gamma correction."""

    def test_gamma_2(self):
        result = apply_gamma(np.array([[[0.25, 0.0, 1.0]]]), 2.0)
        np.testing.assert_array_almost_equal(result, [[[0.5, 0.0, 1.0]]])

    def test_clamps_output(self):
        result = apply_gamma(np.array([[[-0.5, 4.0, 0.5]]]), 2.2)
        assert result[0, 0, 0] == 0.0
        assert result[0, 0, 1] == 1.0

    def test_identity_gamma(self):
        image = np.array([[[0.1, 0.2, 0.3]]])
        np.testing.assert_array_almost_equal(apply_gamma(image, 1.0), image)


def test_luminance_of_white():
    assert abs(luminance(np.array([1.0, 1.0, 1.0])) - 1.0) < 1e-9
