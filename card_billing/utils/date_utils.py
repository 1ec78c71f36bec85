"""Date manipulation utilities"""

import calendar
from datetime import date
from dateutil.relativedelta import relativedelta


def shift_month(month: int, year: int, months: int) -> tuple[int, int]:
    """Move a (month, year) pair forward or backward, rolling the year over"""
    index = year * 12 + (month - 1) + months
    return index % 12 + 1, index // 12


def clamped_date(year: int, month: int, day: int) -> date:
    """Build a date, clamping day to the last day of the month"""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def add_months(from_date: date, months: int) -> date:
    """Same day-of-month N months later (Jan 31 + 1 month -> Feb 28/29)"""
    return from_date + relativedelta(months=months)
