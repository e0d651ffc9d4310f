"""Tests for split allocation."""

from decimal import Decimal

import pytest

from group_ledger.allocator import allocate, equal_split
from group_ledger.models import SplitShare
from group_ledger.money import round2


def amounts(splits) -> list[Decimal]:
    return [split.amount for split in splits]


class TestEqualSplit:
    """Equal splits distribute leftover cents in input order."""

    def test_even_total(self):
        """150 among 3 is exactly 50 each."""
        splits = allocate("equal", Decimal("150"), [1, 2, 3])

        assert amounts(splits) == [Decimal("50.00")] * 3
        assert [s.participant_id for s in splits] == [1, 2, 3]

    def test_remainder_goes_to_first_participants(self):
        """200 among [A, B, C]: base 66.66, two odd cents to A and B."""
        splits = allocate("equal", Decimal("200"), [10, 20, 30])

        assert amounts(splits) == [
            Decimal("66.67"),
            Decimal("66.67"),
            Decimal("66.66"),
        ]

    def test_order_decides_who_gets_the_cents(self):
        """A different order gives a different but still exact distribution."""
        splits = allocate("equal", Decimal("200"), [30, 10, 20])

        by_id = {s.participant_id: s.amount for s in splits}
        assert by_id == {
            30: Decimal("66.67"),
            10: Decimal("66.67"),
            20: Decimal("66.66"),
        }

    def test_single_participant_gets_everything(self):
        splits = equal_split(Decimal("42.42"), [7])

        assert amounts(splits) == [Decimal("42.42")]

    def test_one_cent_among_three(self):
        """Only the first participant gets the single cent."""
        splits = equal_split(Decimal("0.01"), [1, 2, 3])

        assert amounts(splits) == [Decimal("0.01"), Decimal("0.00"), Decimal("0.00")]

    def test_total_rounded_before_splitting(self):
        """100.005 rounds half away from zero to 100.01 first."""
        splits = equal_split(Decimal("100.005"), [1, 2])

        assert amounts(splits) == [Decimal("50.01"), Decimal("50.00")]

    def test_float_input(self):
        """Floats are read through their string form."""
        splits = equal_split(0.1, [1, 2])

        assert amounts(splits) == [Decimal("0.05"), Decimal("0.05")]

    def test_no_participants(self):
        """Zero participants gives an empty split set."""
        assert allocate("equal", Decimal("100"), []) == []

    def test_split_share_objects_accepted(self):
        """Equal mode only uses the participant ids of SplitShare items."""
        shares = [
            SplitShare(participant_id=1, value=Decimal("0")),
            SplitShare(participant_id=2, value=Decimal("0")),
        ]

        splits = allocate("equal", Decimal("10.01"), shares)

        assert amounts(splits) == [Decimal("5.01"), Decimal("5.00")]

    def test_sum_is_exact_for_many_totals_and_group_sizes(self):
        """Splits always sum to the rounded total, and differ by at most a cent."""
        totals = [
            "0.01",
            "0.05",
            "1",
            "9.99",
            "10",
            "33.33",
            "100",
            "200",
            "1234.56",
            "99999.99",
            "17.005",
        ]
        for raw_total in totals:
            total = Decimal(raw_total)
            for count in range(1, 21):
                splits = equal_split(total, list(range(count)))
                values = amounts(splits)

                assert sum(values) == round2(total), (raw_total, count)
                assert max(values) - min(values) <= Decimal("0.01"), (raw_total, count)
                assert all(v.as_tuple().exponent == -2 for v in values)


class TestCustomSplit:
    """Custom splits use explicit amounts without redistribution."""

    def test_amounts_used_as_given(self):
        splits = allocate("custom", Decimal("100"), {1: Decimal("70"), 2: Decimal("30")})

        assert amounts(splits) == [Decimal("70.00"), Decimal("30.00")]

    def test_each_amount_rounded_half_away_from_zero(self):
        splits = allocate("custom", Decimal("20"), {1: "10.005", 2: "9.994"})

        assert amounts(splits) == [Decimal("10.01"), Decimal("9.99")]

    def test_mismatch_is_not_corrected(self):
        """The allocator never fixes totals; the caller validates."""
        splits = allocate("custom", Decimal("100"), {1: "10", 2: "10"})

        assert sum(amounts(splits)) == Decimal("20.00")

    def test_split_share_sequence(self):
        shares = [
            SplitShare(participant_id=4, value=Decimal("12.5")),
            SplitShare(participant_id=5, value=Decimal("7.5")),
        ]

        splits = allocate("custom", Decimal("20"), shares)

        assert [(s.participant_id, s.amount) for s in splits] == [
            (4, Decimal("12.50")),
            (5, Decimal("7.50")),
        ]

    def test_no_shares(self):
        assert allocate("custom", Decimal("100"), {}) == []

    def test_bare_ids_get_zero(self):
        splits = allocate("custom", Decimal("10"), [1, 2])

        assert [(s.participant_id, s.amount) for s in splits] == [
            (1, Decimal("0.00")),
            (2, Decimal("0.00")),
        ]


class TestPercentageSplit:
    """Percentage splits round each share individually."""

    def test_forty_forty_twenty(self):
        """120 at 40/40/20 gives 48/48/24 summing to 120 exactly."""
        splits = allocate("percentage", Decimal("120"), {1: 40, 2: 40, 3: 20})

        assert amounts(splits) == [Decimal("48.00"), Decimal("48.00"), Decimal("24.00")]
        assert sum(amounts(splits)) == Decimal("120.00")

    def test_fractional_percentages(self):
        splits = allocate(
            "percentage", Decimal("100"), {1: "33.33", 2: "33.33", 3: "33.34"}
        )

        assert amounts(splits) == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]

    def test_thirds_leave_rounding_slack(self):
        """Three thirds of 10 round to 3.33 each, a cent short of the total."""
        third = "33.333333"
        splits = allocate("percentage", Decimal("10"), {1: third, 2: third, 3: third})

        assert amounts(splits) == [Decimal("3.33")] * 3
        assert Decimal("10") - sum(amounts(splits)) == Decimal("0.01")

    def test_no_shares(self):
        assert allocate("percentage", Decimal("100"), []) == []

    def test_bare_ids_get_zero(self):
        splits = allocate("percentage", Decimal("10"), [3])

        assert amounts(splits) == [Decimal("0.00")]


class TestUnknownMode:
    def test_unknown_mode_raises(self):
        with pytest.raises(ValueError, match="Unknown split mode"):
            allocate("shares", Decimal("10"), {1: 1})
