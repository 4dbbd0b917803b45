import pytest
from datetime import date, timedelta

from holidayrules.core.business import BusinessDayCalculator, HolidayScheduler
from holidayrules.core.resolver import resolve
from holidayrules.core.rules import EasterOffsetRule, FixedDateRule
from holidayrules.core.ruleset import JurisdictionRuleSet


@pytest.fixture
def ruleset():
    return JurisdictionRuleSet(
        country_code="XB",
        weekend_policy="nearest_weekday",
        rules=[
            FixedDateRule(name="New Year's Day", month=1, day=1),
            EasterOffsetRule(name="Good Friday", offset_days=-2),
            FixedDateRule(name="Independence Day", month=7, day=4),
            FixedDateRule(name="Christmas Day", month=12, day=25),
        ],
    )


@pytest.fixture
def calculator(ruleset):
    return BusinessDayCalculator(lambda year: resolve(ruleset, year))


class TestIsBusinessDay:

    def test_weekends_and_holidays(self, calculator):
        assert calculator.is_business_day(date(2024, 7, 3))
        assert not calculator.is_business_day(date(2024, 7, 4))
        assert not calculator.is_business_day(date(2024, 7, 6))
        assert not calculator.is_business_day(date(2024, 3, 29))

    def test_observed_dates_count_as_holidays(self, ruleset, calculator):
        # July 4, 2026 is a Saturday, observed Friday July 3
        assert not calculator.is_business_day(date(2026, 7, 3))

        base_only = BusinessDayCalculator(lambda year: resolve(ruleset, year), include_observed=False)
        assert base_only.is_business_day(date(2026, 7, 3))

    def test_observed_date_in_previous_year(self, calculator):
        # January 1, 2022 was a Saturday, observed Friday December 31, 2021
        assert not calculator.is_business_day(date(2021, 12, 31))

    def test_custom_weekend(self, ruleset):
        friday_saturday = BusinessDayCalculator(lambda year: resolve(ruleset, year), weekend=(4, 5))
        assert friday_saturday.weekmask == "1111001"
        assert friday_saturday.is_business_day(date(2024, 7, 7))
        assert not friday_saturday.is_business_day(date(2024, 7, 5))

    def test_weekend_cannot_cover_whole_week(self, ruleset):
        with pytest.raises(ValueError):
            BusinessDayCalculator(lambda year: resolve(ruleset, year), weekend=range(7))


class TestStepping:

    def test_next_business_day_skips_holiday(self, calculator):
        assert calculator.next_business_day(date(2024, 7, 3)) == date(2024, 7, 5)

    def test_next_business_day_from_weekend(self, calculator):
        assert calculator.next_business_day(date(2024, 7, 6)) == date(2024, 7, 8)

    def test_previous_business_day(self, calculator):
        assert calculator.previous_business_day(date(2024, 7, 5)) == date(2024, 7, 3)
        assert calculator.previous_business_day(date(2024, 7, 8)) == date(2024, 7, 5)

    def test_add_zero_returns_same_day(self, calculator):
        saturday = date(2024, 7, 6)
        assert calculator.add_business_days(saturday, 0) == saturday

    def test_add_across_year_end(self, calculator):
        # Dec 24 Tue -> skip 25th -> 26, 27, 30, 31, then Jan 2
        assert calculator.add_business_days(date(2024, 12, 24), 5) == date(2025, 1, 2)
        assert calculator.add_business_days(date(2025, 1, 2), -5) == date(2024, 12, 24)

    def test_add_many_business_days(self, calculator):
        start = date(2024, 1, 2)
        result = calculator.add_business_days(start, 500)
        assert calculator.business_days_between(start, result) == 500

    def test_results_are_business_days(self, calculator, fake):
        for _ in range(50):
            day = fake.date_between(start_date=date(2000, 1, 1), end_date=date(2040, 12, 31))
            following = calculator.next_business_day(day)
            preceding = calculator.previous_business_day(day)
            assert following > day and calculator.is_business_day(following)
            assert preceding < day and calculator.is_business_day(preceding)
            assert following - day <= timedelta(days=5)


class TestCounting:

    def test_half_open_count(self, calculator):
        # Mon 1 .. Sun 7 July 2024 minus the 4th
        assert calculator.business_days_between(date(2024, 7, 1), date(2024, 7, 8)) == 4

    def test_reversed_count_is_negated(self, calculator):
        assert calculator.business_days_between(date(2024, 7, 8), date(2024, 7, 1)) == -4

    def test_same_day(self, calculator):
        assert calculator.business_days_between(date(2024, 7, 1), date(2024, 7, 1)) == 0

    def test_business_days_in_month(self, calculator):
        days = calculator.business_days_in_month(2024, 7)
        assert len(days) == 22
        assert date(2024, 7, 4) not in days
        assert days[0] == date(2024, 7, 1)


class TestMonthEnd:

    def test_last_business_day_on_weekday(self, calculator):
        assert calculator.last_business_day_of_month(2024, 5) == date(2024, 5, 31)

    def test_last_business_day_skips_weekend(self, calculator):
        # November 30, 2024 is a Saturday
        assert calculator.last_business_day_of_month(2024, 11) == date(2024, 11, 29)

    def test_last_business_day_skips_next_years_observed_date(self, calculator):
        assert calculator.last_business_day_of_month(2021, 12) == date(2021, 12, 30)

    def test_is_end_of_month(self, calculator):
        assert calculator.is_end_of_month(date(2024, 11, 29))
        assert not calculator.is_end_of_month(date(2024, 11, 28))
        assert not calculator.is_end_of_month(date(2024, 11, 30))


def test_holiday_dates_include_observed(ruleset, calculator):
    days = calculator.holiday_dates(2026, 2026)
    assert date(2026, 7, 4) in days
    assert date(2026, 7, 3) in days
    assert days == sorted(days)


class TestMonthCalendar:

    def test_one_entry_per_day(self, calculator):
        entries = calculator.month_calendar(2024, 2)
        assert [entry.day for entry in entries] == [date(2024, 2, day) for day in range(1, 30)]

    def test_observed_and_base_dates(self, calculator):
        entries = {entry.day: entry for entry in calculator.month_calendar(2026, 7)}

        observed = entries[date(2026, 7, 3)]
        assert observed.is_holiday and not observed.is_weekend and not observed.is_business_day
        assert observed.holiday.name == "Independence Day"

        base = entries[date(2026, 7, 4)]
        assert base.is_holiday and base.is_weekend
        assert base.holiday.observed_date == date(2026, 7, 3)

        plain = entries[date(2026, 7, 6)]
        assert plain.is_business_day and not plain.is_holiday and plain.holiday is None

    def test_business_days_agree(self, calculator):
        entries = calculator.month_calendar(2024, 7)
        business_days = [entry.day for entry in entries if entry.is_business_day]
        assert business_days == calculator.business_days_in_month(2024, 7)

    def test_observed_date_from_next_year(self, calculator):
        last = calculator.month_calendar(2021, 12)[-1]
        assert last.day == date(2021, 12, 31)
        assert last.holiday.name == "New Year's Day"

    def test_observed_dates_excluded(self, ruleset):
        base_only = BusinessDayCalculator(lambda year: resolve(ruleset, year), include_observed=False)
        entry = base_only.month_calendar(2026, 7)[2]
        assert entry.day == date(2026, 7, 3)
        assert not entry.is_holiday and entry.is_business_day


class TestHolidayScheduler:

    @pytest.fixture
    def scheduler(self, calculator):
        return HolidayScheduler(calculator)

    def test_recurring_moves_off_holiday(self, scheduler):
        schedule = scheduler.schedule_recurring(date(2024, 6, 27), timedelta(days=7), 4)
        assert schedule == [
            date(2024, 6, 27), date(2024, 7, 5), date(2024, 7, 11), date(2024, 7, 18),
        ]

    def test_recurring_from_weekend(self, scheduler):
        schedule = scheduler.schedule_recurring(date(2024, 7, 6), timedelta(weeks=1), 2)
        assert schedule == [date(2024, 7, 8), date(2024, 7, 15)]

    def test_recurring_occurrences_are_business_days(self, scheduler, calculator, fake):
        start = fake.date_between(start_date=date(2020, 1, 1), end_date=date(2030, 12, 31))
        schedule = scheduler.schedule_recurring(start, timedelta(days=3), 30)
        assert len(schedule) == 30
        assert all(calculator.is_business_day(day) for day in schedule)

    def test_recurring_zero_count(self, scheduler):
        assert scheduler.schedule_recurring(date(2024, 1, 2), timedelta(days=1), 0) == []

    def test_recurring_requires_positive_interval(self, scheduler):
        with pytest.raises(ValueError):
            scheduler.schedule_recurring(date(2024, 1, 2), timedelta(0), 3)

    def test_month_end(self, scheduler):
        assert scheduler.schedule_month_end(date(2024, 10, 15), 3) == [
            date(2024, 10, 31), date(2024, 11, 29), date(2024, 12, 31),
        ]

    def test_month_end_across_year(self, scheduler):
        # December 31, 2021 is the observed New Year's Day
        assert scheduler.schedule_month_end(date(2021, 12, 1), 2) == [
            date(2021, 12, 30), date(2022, 1, 31),
        ]


class TestConfiguredYearBounds:
    """Calculators over the registry work up to the configured year limits."""

    def test_first_supported_year(self, registry):
        calendar = BusinessDayCalculator.for_country("US", registry=registry)
        assert calendar.is_business_day(date(1900, 1, 2))
        assert not calendar.is_business_day(date(1900, 1, 1))
        assert calendar.business_days_between(date(1900, 1, 1), date(1900, 1, 8)) == 4

    def test_last_supported_year(self, registry):
        calendar = BusinessDayCalculator.for_country("US", registry=registry)
        assert not calendar.is_business_day(date(2200, 12, 25))
        assert calendar.is_business_day(date(2200, 12, 31))
        assert calendar.last_business_day_of_month(2200, 12) == date(2200, 12, 31)

    def test_narrowed_range(self, registry):
        from holidayrules.core.config import EngineConfig

        registry.configure(EngineConfig(min_year=2000, max_year=2030))
        calendar = BusinessDayCalculator.for_country("US", registry=registry)
        assert calendar.next_business_day(date(2030, 12, 24)) == date(2030, 12, 26)
        assert not calendar.is_business_day(date(2000, 1, 17))
