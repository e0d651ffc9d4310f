"""Tests for fixed-point currency helpers."""

from decimal import Decimal

from group_ledger.money import (
    from_cents,
    has_excess_precision,
    round2,
    split_total_matches,
    to_cents,
)


class TestRound2:
    """Half-away-from-zero rounding to the cent."""

    def test_half_rounds_away_from_zero(self):
        assert round2(Decimal("2.675")) == Decimal("2.68")
        assert round2(Decimal("-2.675")) == Decimal("-2.68")
        assert round2(Decimal("0.005")) == Decimal("0.01")
        assert round2(Decimal("-0.005")) == Decimal("-0.01")

    def test_below_half_rounds_toward_zero(self):
        assert round2(Decimal("12.3449")) == Decimal("12.34")

    def test_float_goes_through_string(self):
        """2.675 as a float is just below 2.675 in binary; the string isn't."""
        assert round2(2.675) == Decimal("2.68")

    def test_int_and_str_inputs(self):
        assert round2(150) == Decimal("150.00")
        assert round2("66.665") == Decimal("66.67")


class TestCents:
    def test_to_cents(self):
        assert to_cents(Decimal("66.67")) == 6667
        assert to_cents("0.01") == 1
        assert to_cents(Decimal("100.005")) == 10001

    def test_from_cents(self):
        assert from_cents(6667) == Decimal("66.67")
        assert from_cents(0) == Decimal("0.00")
        assert str(from_cents(5000)) == "50.00"


class TestPrecision:
    def test_two_places_is_fine(self):
        assert not has_excess_precision(Decimal("12.30"))
        assert not has_excess_precision(Decimal("100"))

    def test_three_places_detected(self):
        assert has_excess_precision(Decimal("12.345"))


class TestSplitTotalMatches:
    """The one-cent tolerance used by request validation."""

    def test_exact_match(self):
        assert split_total_matches(Decimal("120"), [Decimal("48"), Decimal("48"), Decimal("24")])

    def test_one_cent_short_is_accepted(self):
        assert split_total_matches(Decimal("100"), [Decimal("33.33")] * 3)

    def test_two_cents_off_is_rejected(self):
        assert not split_total_matches(Decimal("100"), [Decimal("49.99"), Decimal("49.99")])

    def test_empty_splits_never_match_a_positive_amount(self):
        assert not split_total_matches(Decimal("10"), [])

    def test_custom_tolerance(self):
        assert split_total_matches(
            Decimal("100"), [Decimal("49.95"), Decimal("49.95")], tolerance="0.10"
        )
