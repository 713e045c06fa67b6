"""
Tests for the easing catalogue and TransitionRecord validation.
"""

import math

import pytest

from models.transition import (
    EASING_FUNCTIONS,
    Easing,
    TransitionRecord,
    apply_easing,
    resolve_easing,
)


class TestResolveEasing:
    """Easing names accepted from code and configuration."""

    @pytest.mark.parametrize("name, expected", [
        ("linear", Easing.LINEAR),
        ("ease-out", Easing.EASE_OUT),
        ("EASE_IN_OUT", Easing.EASE_IN_OUT),
        ("<", Easing.EASE_IN),
        (">", Easing.EASE_OUT),
        ("<>", Easing.EASE_IN_OUT),
        ("backOut", Easing.BACK_OUT),
        (Easing.BOUNCE, Easing.BOUNCE),
    ])
    def test_known_names(self, name, expected):
        assert resolve_easing(name) is expected

    @pytest.mark.parametrize("name", ["wobble", "", None, 3, "Linear "])
    def test_unknown_names(self, name):
        assert resolve_easing(name) is None


class TestEasingCurves:
    """Every curve starts at 0 and ends at 1."""

    @pytest.mark.parametrize("easing", list(Easing))
    def test_endpoints(self, easing):
        assert apply_easing(easing, 0.0) == pytest.approx(0.0, abs=1e-2)
        assert apply_easing(easing, 1.0) == pytest.approx(1.0, abs=1e-2)

    def test_catalogue_complete(self):
        assert set(EASING_FUNCTIONS) == set(Easing)

    def test_linear_midpoint(self):
        assert apply_easing(Easing.LINEAR, 0.5) == 0.5

    def test_ease_out_is_fast_at_start(self):
        assert apply_easing(Easing.EASE_OUT, 0.5) == pytest.approx(0.5 ** 0.48)
        assert apply_easing(Easing.EASE_OUT, 0.5) > 0.5
        assert apply_easing(Easing.EASE_IN, 0.5) < 0.5

    def test_back_out_overshoots(self):
        assert max(apply_easing(Easing.BACK_OUT, t / 10) for t in range(11)) > 1.0


class TestTransitionRecord:
    """Record validation drops unusable transitions."""

    def _record(self, **overrides):
        values = dict(
            target=object(),
            setter=lambda v: None,
            begin_value=0.0,
            end_value=1.0,
            easing=Easing.LINEAR,
            duration_ms=100,
        )
        values.update(overrides)
        return TransitionRecord(**values)

    def test_valid(self):
        assert self._record().is_valid()

    def test_zero_duration_is_valid(self):
        assert self._record(duration_ms=0).is_valid()

    @pytest.mark.parametrize("overrides", [
        {"easing": None},
        {"duration_ms": math.nan},
        {"duration_ms": math.inf},
        {"duration_ms": -1},
        {"begin_value": None},
        {"end_value": math.nan},
        {"end_value": True},
        {"setter": None},
        {"removed": True},
    ])
    def test_invalid(self, overrides):
        assert not self._record(**overrides).is_valid()
