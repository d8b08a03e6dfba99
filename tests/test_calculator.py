"""Tests for the guideline calculator pipeline."""

from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest
from structlog.testing import capture_logs

from cssd_core import (
    ChildSchedule,
    CssdConfig,
    FinalResult,
    GuidelineCalculator,
    GuidelineInput,
    NegativeInputPolicy,
    Payer,
    ScheduleDefaults,
    ScheduleSource,
    SupplementalExpenses,
    ValidationError,
)


def _with_schedule(data: GuidelineInput, *schedule: tuple[int, int]) -> GuidelineInput:
    return data.model_copy(update={
        "parenting_schedule": tuple(
            ChildSchedule(mother_overnights=m, father_overnights=f) for m, f in schedule
        ),
    })


class TestGuidelineCalculator:
    """Test suite for GuidelineCalculator."""

    def test_calculate_returns_result(self, calculator, one_child_input):
        """Calculator should return a FinalResult."""
        result = calculator.calculate(one_child_input)

        assert isinstance(result, FinalResult)
        assert result.request == one_child_input

    def test_majority_time_with_mother(self, calculator, one_child_input):
        """Father pays his whole obligation when the child lives with the mother."""
        result = calculator.calculate(one_child_input)

        assert result.mother_worksheet.line_seven == Decimal("31655")
        assert result.father_worksheet.line_seven == Decimal("14655")
        assert result.combined.total_support_need == Decimal("11733")
        assert result.combined.mother.net_obligation == Decimal("8020")
        assert result.combined.father.net_obligation == Decimal("3713")

        assert result.payer == Payer.FATHER
        assert result.father_total_annual == Decimal("3713")
        assert result.father_total_monthly == Decimal("309.42")
        assert result.mother_total_annual == 0
        assert result.total_monthly_transfer == Decimal("309.42")
        assert result.total_annual_transfer == Decimal("3713")
        assert result.warnings == ()

    def test_shared_parenting_credit(self, calculator, one_child_input):
        """Both parents above 110 overnights: credit applies, mother pays."""
        result = calculator.calculate(_with_schedule(one_child_input, (150, 215)))
        child = result.children[0]

        assert child.credit_applies
        assert child.mother_credited_amount == Decimal("2214")
        assert child.father_credited_amount == Decimal("2690")
        assert result.payer == Payer.MOTHER
        assert result.total_annual_transfer == Decimal("4783")
        assert result.total_monthly_transfer == Decimal("398.58")

    def test_credit_capped_at_payer_base(self, calculator, one_child_input):
        result = calculator.calculate(_with_schedule(one_child_input, (120, 300)))

        assert result.payer == Payer.MOTHER
        assert result.mother_total_annual == Decimal("8020")

    @pytest.mark.parametrize(
        "schedule,credit_applies,mother_annual",
        [
            ((110, 255), False, Decimal("8020")),
            ((111, 254), True, Decimal("7941")),
        ],
    )
    def test_credit_threshold_is_strict(
        self, calculator, one_child_input, schedule, credit_applies, mother_annual
    ):
        """Exactly 110 overnights does not qualify; 111 does."""
        result = calculator.calculate(_with_schedule(one_child_input, schedule))

        assert result.children[0].credit_applies is credit_applies
        assert result.mother_total_annual == mother_annual

    def test_equal_time_below_threshold(self, calculator, one_child_input):
        result = calculator.calculate(_with_schedule(one_child_input, (100, 100)))

        assert result.payer == Payer.MOTHER
        assert result.mother_total_annual == Decimal("4307")
        assert result.total_monthly_transfer == Decimal("358.92")

    def test_two_children_reuse_first_schedule(self, calculator, one_child_input):
        """A missing second schedule reuses the first child's schedule."""
        data = one_child_input.model_copy(update={"number_of_children": 2})
        result = calculator.calculate(data)

        assert result.combined.primary_allowance == Decimal("10173")
        assert result.combined.mother.net_obligation == Decimal("12141")
        assert result.combined.father.net_obligation == Decimal("5621")
        assert len(result.children) == 2
        assert result.children[0].father_base_obligation == Decimal("2810.5")
        assert result.children[1].schedule_source == ScheduleSource.FIRST_CHILD
        assert all(c.father_annual == Decimal("2811") for c in result.children)

        assert result.father_total_annual == Decimal("5622")
        assert result.total_monthly_transfer == Decimal("468.50")
        assert any("child 2" in w for w in result.warnings)

    def test_supplements_are_credited(self, calculator):
        data = GuidelineInput(
            mother_gross_annual=Decimal("50000"),
            father_gross_annual=Decimal("50000"),
            supplemental_expenses=SupplementalExpenses(childcare=Decimal("2000")),
            parenting_schedule=[ChildSchedule(mother_overnights=183, father_overnights=182)],
        )
        result = calculator.calculate(data)

        assert result.combined.total_support_need == Decimal("15272")
        assert result.combined.mother.credit == Decimal("1000")
        assert result.combined.mother.net_obligation == Decimal("6636")
        assert result.payer == Payer.FATHER
        assert result.total_annual_transfer == Decimal("46")
        assert result.total_monthly_transfer == Decimal("3.83")

    def test_sola_skipped_for_low_earner(self, calculator, one_child_input):
        data = one_child_input.model_copy(update={
            "father_gross_annual": Decimal("22000"),
            "father_deductions_annual": Decimal("0"),
        })
        result = calculator.calculate(data)

        assert result.combined.father.sola is None
        assert result.combined.total_support_need == Decimal("9747")
        assert result.father_total_annual == Decimal("750")

        sola_steps = {e.step: e for e in result.audit_log if e.step.endswith("_sola")}
        assert sola_steps["father_sola"].output_value == "skipped"
        assert sola_steps["mother_sola"].output_value == "3643"


class TestEdgeCases:
    """Degenerate inputs still produce a complete result."""

    def test_zero_incomes_no_schedule(self, calculator):
        result = calculator.calculate(GuidelineInput())

        assert result.combined.used_default_shares
        assert result.combined.mother.share == Decimal("0.5")
        assert result.combined.total_support_need == Decimal("6104")
        assert result.combined.mother.net_obligation == Decimal("3052")
        assert result.combined.father.net_obligation == Decimal("3052")

        child = result.children[0]
        assert child.schedule_source == ScheduleSource.DEFAULT
        assert (child.mother_overnights, child.father_overnights) == (255, 110)
        assert result.payer == Payer.FATHER
        assert result.total_monthly_transfer == Decimal("254.33")
        assert result.total_annual_transfer == Decimal("3052")

        assert len(result.warnings) == 4
        assert any("50/50" in w for w in result.warnings)
        assert any("Worksheet C" in w for w in result.warnings)

    def test_custom_default_schedule(self):
        config = CssdConfig(
            _env_file=None,
            env="test",
            schedule=ScheduleDefaults(mother_overnights=183, father_overnights=182),
        )
        result = GuidelineCalculator(config).calculate(GuidelineInput())

        # Bases 3,052 each; credits 1,537 and 1,516
        assert result.children[0].credit_applies
        assert result.payer == Payer.FATHER
        assert result.total_annual_transfer == Decimal("21")
        assert result.total_monthly_transfer == Decimal("1.75")

    def test_child_count_clamped(self, calculator):
        data = GuidelineInput(
            mother_gross_annual=Decimal("60000"),
            father_gross_annual=Decimal("40000"),
            number_of_children=12,
            parenting_schedule=[ChildSchedule(mother_overnights=365, father_overnights=0)],
        )
        result = calculator.calculate(data)

        assert data.children_clamped
        assert result.combined.number_of_children == 8
        assert len(result.children) == 8
        assert result.warnings[0] == (
            "Number of children is outside the 1-8 table range; calculated for 8."
        )

    def test_child_count_in_range_has_no_clamp_warning(self, calculator, one_child_input):
        result = calculator.calculate(one_child_input)

        assert not result.request.children_clamped
        assert not any("table range" in w for w in result.warnings)

    def test_huge_child_count_from_form(self, calculator):
        result = calculator.calculate_form({"numChildren": "1e200000000"})

        assert result.request.number_of_children == 8
        assert result.request.children_clamped

    def test_malformed_form_values_coerced(self, calculator):
        result = calculator.calculate_form({
            "mIncome": "abc",
            "fIncome": None,
            "numChildren": "zero",
            "supplements": "none",
            "parenting": "every other weekend",
        })

        assert result.request.mother_gross_annual == 0
        assert result.request.number_of_children == 1
        assert result.request.parenting_schedule == ()
        assert result.combined.total_support_need == Decimal("6104")


class TestInvariants:
    """Properties that hold for every calculation."""

    INPUTS = [
        ("60000", "8000", "40000", "5000", (365, 0)),
        ("15000", "0", "90000", "12000", (150, 215)),
        ("0", "0", "0", "0", (183, 182)),
        ("22000", "0", "60000", "8000", (120, 300)),
        ("250000", "60000", "30000", "2000", (0, 365)),
    ]

    @pytest.fixture(params=INPUTS)
    def data(self, request) -> GuidelineInput:
        mg, md, fg, fd, (mo, fo) = request.param
        return GuidelineInput(
            mother_gross_annual=mg,
            mother_deductions_annual=md,
            father_gross_annual=fg,
            father_deductions_annual=fd,
            number_of_children=2,
            parenting_schedule=[ChildSchedule(mother_overnights=mo, father_overnights=fo)],
        )

    def test_idempotent(self, calculator, data):
        assert calculator.calculate(data) == calculator.calculate(data)

    def test_shares_sum_to_one(self, calculator, data):
        combined = calculator.calculate(data).combined
        assert abs(combined.mother.share + combined.father.share - 1) < Decimal("1e-20")

    def test_amounts_non_negative(self, calculator, data):
        result = calculator.calculate(data)

        assert result.mother_worksheet.line_seven >= 0
        assert result.father_worksheet.line_seven >= 0
        assert result.combined.mother.net_obligation >= 0
        assert result.combined.father.net_obligation >= 0
        for child in result.children:
            assert child.mother_annual >= 0
            assert child.father_annual >= 0
        assert result.total_monthly_transfer >= 0

    def test_one_payer_per_child(self, calculator, data):
        for child in calculator.calculate(data).children:
            assert child.mother_annual == 0 or child.father_annual == 0

    def test_payer_matches_totals(self, calculator, data):
        result = calculator.calculate(data)

        if result.payer == Payer.MOTHER:
            assert result.mother_total_monthly > result.father_total_monthly
        elif result.payer == Payer.FATHER:
            assert result.father_total_monthly > result.mother_total_monthly
        else:
            assert result.total_monthly_transfer == 0

    def test_payer_owes_no_more_than_base(self, calculator, data):
        for child in calculator.calculate(data).children:
            assert child.mother_annual <= child.mother_base_obligation + Decimal("0.5")
            assert child.father_annual <= child.father_base_obligation + Decimal("0.5")

    def test_father_obligation_monotonic_in_income(self, calculator):
        previous = Decimal("-1")
        for gross in range(0, 150001, 5000):
            data = GuidelineInput(
                mother_gross_annual=Decimal("45000"),
                father_gross_annual=Decimal(gross),
                parenting_schedule=[ChildSchedule(mother_overnights=365, father_overnights=0)],
            )
            annual = calculator.calculate(data).father_total_annual
            assert annual >= previous
            previous = annual


class TestAuditTrail:
    """Every step is recorded for the worksheet trail."""

    def test_audit_steps_in_order(self, calculator, one_child_input):
        result = calculator.calculate(one_child_input)

        assert [e.step for e in result.audit_log] == [
            "mother_income_after_deductions",
            "mother_income_available",
            "mother_line_seven",
            "father_income_after_deductions",
            "father_income_available",
            "father_line_seven",
            "parent_shares",
            "primary_allowance_and_supplements",
            "mother_sola",
            "father_sola",
            "total_support_need",
            "mother_annual_obligation",
            "father_annual_obligation",
            "child_1_parenting_adjustment",
            "monthly_transfer",
        ]

    def test_worksheet_c_step_recorded(self, calculator):
        data = GuidelineInput(mother_gross_annual=Decimal("15000"))
        result = calculator.calculate(data)
        steps = {e.step: e for e in result.audit_log}

        assert "mother_worksheet_c" in steps
        assert steps["mother_worksheet_c"].source == "CSSD Worksheet C"
        assert "multiplier=0.08" in steps["mother_worksheet_c"].output_value

    def test_audit_log_reset_between_runs(self, calculator, one_child_input):
        first = calculator.calculate(one_child_input)
        second = calculator.calculate(one_child_input)

        assert len(first.audit_log) == len(second.audit_log)

    def test_shared_instance_across_threads(self, calculator, one_child_input):
        """Concurrent runs on one calculator keep separate trails."""
        data = one_child_input.model_copy(update={"number_of_children": 8})
        expected = calculator.calculate(data)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: calculator.calculate(data), range(64)))

        for result in results:
            assert len(result.audit_log) == len(expected.audit_log)
            assert result.warnings == expected.warnings
            assert result == expected

    def test_versions_recorded(self, calculator, one_child_input):
        result = calculator.calculate(one_child_input)

        assert result.methodology_version == "cssd-core-1.0"
        assert result.guideline_version == "mt-cssd-v1"

    def test_steps_logged(self, calculator, one_child_input):
        with capture_logs() as logs:
            calculator.calculate(one_child_input)

        events = [entry["event"] for entry in logs]
        assert events.count("calculation_step") == 15
        assert events[-1] == "guideline_calculation_complete"
        assert logs[-1]["payer"] == "father"


class TestFormEntryPoints:
    FORM = {
        "mIncome": "60000",
        "mDed": "8000",
        "fIncome": 40000,
        "fDed": 5000,
        "numChildren": "1",
        "parenting": [{"daysA": 365, "daysB": 0}],
    }

    def test_short_form_keys(self, calculator, one_child_input):
        result = calculator.calculate_form(self.FORM)

        assert result.request == one_child_input
        assert result.total_monthly_transfer == Decimal("309.42")

    def test_negative_clamped_by_default(self, calculator):
        result = calculator.calculate_form({**self.FORM, "mDed": "-2000"})

        assert result.request.mother_deductions_annual == 0
        assert result.mother_worksheet.income_after_deductions == Decimal("60000")

    def test_negative_rejected_when_configured(self):
        config = CssdConfig(
            _env_file=None,
            env="test",
            negative_input_policy=NegativeInputPolicy.REJECT,
        )
        calculator = GuidelineCalculator(config)

        with pytest.raises(ValidationError) as exc_info:
            calculator.calculate_form({**self.FORM, "fIncome": -40000})

        assert exc_info.value.field == "father_gross_annual"
        assert exc_info.value.recoverable

    def test_batch(self, calculator, one_child_input):
        other = _with_schedule(one_child_input, (150, 215))
        results = calculator.calculate_batch([one_child_input, other])

        assert [r.payer for r in results] == [Payer.FATHER, Payer.MOTHER]
        assert results[0].total_annual_transfer == Decimal("3713")
        assert results[1].total_annual_transfer == Decimal("4783")
