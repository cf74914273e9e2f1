"""
Duration model.

Every duration is a calendar relativedelta: month and year classes add
calendar months/years, trial and grace add days. All activation sources
use these same definitions.
"""

from dateutil.relativedelta import relativedelta

from .models import DurationClass
from .exceptions import InvalidGrantError


DURATIONS: dict[DurationClass, relativedelta] = {
    DurationClass.ONE_MONTH: relativedelta(months=1),
    DurationClass.THREE_MONTHS: relativedelta(months=3),
    DurationClass.SIX_MONTHS: relativedelta(months=6),
    DurationClass.ONE_YEAR: relativedelta(years=1),
    DurationClass.FIVE_YEARS: relativedelta(years=5),
}


def duration_of(duration_class: DurationClass) -> relativedelta:
    """
    Get the calendar duration of a fixed duration class.

    Raises:
        InvalidGrantError: For LIFETIME, which has no finite duration
    """
    try:
        return DURATIONS[duration_class]
    except KeyError:
        raise InvalidGrantError(f"{duration_class.value} has no finite duration")
