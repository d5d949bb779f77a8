"""
Donation analytics.

Pure, synchronous aggregations over donation rows that have already been
fetched (see ``services.donor_records``). Nothing here touches the database,
so every function can be handed plain ``DonationRecord`` lists.
"""
import calendar
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Iterable, Optional

from .currency import format_amount

MONTH_ABBR = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
              'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')

CSV_HEADER = 'Date,Charity,Amount,Currency,Message'

# South African fiscal year: 1 March to the end of the following February
TAX_YEAR_START_MONTH = 3


@dataclass
class DonationRecord:
    """A donation joined with the charity it was made to."""
    donation_id: str
    charity_id: str
    charity_name: str
    amount_cents: int
    currency: str
    donated_at: datetime
    message: Optional[str] = None
    charity_photo_url: Optional[str] = None
    status: Optional[str] = None
    donor_name: Optional[str] = None

    @property
    def formatted_amount(self) -> str:
        return format_amount(self.amount_cents, self.currency)

    def to_dict(self) -> dict:
        data = asdict(self)
        data['formatted_amount'] = self.formatted_amount
        return data


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(str(value)).date()


def total_amount(donations: Iterable[DonationRecord]) -> int:
    return sum(d.amount_cents for d in donations)


def count_by_charity(donations: Iterable[DonationRecord]) -> dict:
    """Sum amounts per charity id, keeping the first name seen for each id."""
    totals = {}
    for donation in donations:
        entry = totals.get(donation.charity_id)
        if entry is None:
            totals[donation.charity_id] = {'name': donation.charity_name, 'amount': donation.amount_cents}
        else:
            entry['amount'] += donation.amount_cents
    return totals


def top_charities(donations: Iterable[DonationRecord], n: int = 5) -> list:
    """Charities ranked by amount given, largest first.

    Ties keep the order in which the charities were first encountered.
    """
    ranked = sorted(
        (
            {'charity_id': charity_id, 'name': entry['name'], 'amount': entry['amount']}
            for charity_id, entry in count_by_charity(donations).items()
        ),
        key=lambda entry: entry['amount'],
        reverse=True,
    )
    return ranked[:max(n, 0)]


def month_keys(reference_date, months_back: int = 6) -> list:
    """(year, month) pairs for the window ending at reference_date's month, oldest first."""
    ref = _as_date(reference_date)
    year, month = ref.year, ref.month
    keys = []
    for _ in range(max(months_back, 0)):
        keys.append((year, month))
        month -= 1
        if month == 0:
            month = 12
            year -= 1
    keys.reverse()
    return keys


def monthly_totals(donations: Iterable[DonationRecord], reference_date, months_back: int = 6) -> list:
    """
    Bucket donation amounts by calendar month.

    Returns exactly ``months_back`` buckets ending at the month containing
    ``reference_date``, oldest first, with empty months reported as zero.
    Buckets are keyed on each donation's own year and month.
    """
    keys = month_keys(reference_date, months_back)
    buckets = {key: 0 for key in keys}
    for donation in donations:
        donated = _as_date(donation.donated_at)
        key = (donated.year, donated.month)
        if key in buckets:
            buckets[key] += donation.amount_cents

    return [
        {
            'month': f"{year:04d}-{month:02d}",
            'label': f"{MONTH_ABBR[month - 1]} {year}",
            'amount': buckets[(year, month)],
        }
        for year, month in keys
    ]


def tax_year_window(reference_date) -> tuple:
    """Inclusive (start, end) dates of the tax year containing reference_date."""
    ref = _as_date(reference_date)
    start_year = ref.year if ref.month >= TAX_YEAR_START_MONTH else ref.year - 1
    end_year = start_year + 1
    last_day = calendar.monthrange(end_year, 2)[1]
    return date(start_year, TAX_YEAR_START_MONTH, 1), date(end_year, 2, last_day)


def tax_year_label(reference_date) -> str:
    start, end = tax_year_window(reference_date)
    return f"{start.year}/{end.year}"


def tax_year_total(donations: Iterable[DonationRecord], reference_date) -> int:
    start, end = tax_year_window(reference_date)
    return sum(
        d.amount_cents for d in donations
        if start <= _as_date(d.donated_at) <= end
    )


def filter_donations(donations: Iterable[DonationRecord], charity_id=None, year=None) -> list:
    """Donations matching the charity and calendar year given; None means no constraint."""
    result = []
    for donation in donations:
        if charity_id is not None and str(donation.charity_id) != str(charity_id):
            continue
        if year is not None and _as_date(donation.donated_at).year != int(year):
            continue
        result.append(donation)
    return result


def filter_options(donations: Iterable[DonationRecord]) -> dict:
    """Years (newest first) and charities (first seen first) present in the donations."""
    donations = list(donations)
    years = sorted({_as_date(d.donated_at).year for d in donations}, reverse=True)
    charities = [
        {'charity_id': charity_id, 'name': entry['name']}
        for charity_id, entry in count_by_charity(donations).items()
    ]
    return {'years': years, 'charities': charities}


def format_short_date(value) -> str:
    """'Jan 5, 2024' style date."""
    day = _as_date(value)
    return f"{MONTH_ABBR[day.month - 1]} {day.day}, {day.year}"


def _quote(value) -> str:
    return '"' + (value or '').replace('"', '""') + '"'


def to_csv(donations: Iterable[DonationRecord]) -> str:
    lines = [CSV_HEADER]
    for donation in donations:
        lines.append(','.join([
            format_short_date(donation.donated_at),
            _quote(donation.charity_name),
            format_amount(donation.amount_cents, donation.currency),
            donation.currency,
            _quote(donation.message),
        ]))
    return '\n'.join(lines)


def export_filename(export_date) -> str:
    return f"donations-{_as_date(export_date).isoformat()}.csv"
