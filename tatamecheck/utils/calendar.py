import calendar
from datetime import date


def add_months(d: date, months: int, day: int | None = None) -> date:
    """
    Shift a date by whole months, clamping to the last day of a shorter month.
    `day` pins the day-of-month (e.g. the 31st of a monthly series) before clamping.
    """
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(day or d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def generate_calendar_data(year: int, month: int, marked: dict | None = None, today: date | None = None):
    """Month grid (weeks of 7 days) with each day's entry from `marked`, keyed by date."""
    cal = calendar.Calendar()
    marked = marked or {}
    today = today or date.today()

    weeks = []
    current_week = []

    for day_date in cal.itermonthdates(year, month):
        current_week.append({
            "date": day_date,
            "in_month": day_date.month == month,
            "is_today": day_date == today,
            "checkin": marked.get(day_date),
        })
        if len(current_week) == 7:
            weeks.append(current_week)
            current_week = []

    if current_week:
        weeks.append(current_week)

    return weeks
