"""
reading_stats.py — Data loader + computed metrics for the reading dashboard.

What this module does:
1) Load the "My Reads" export (one row per completed book) into raw records.
2) Normalize each raw record into an immutable Book (title cleanup, numeric
   coercion, local-time date parsing, id-based de-duplication).
3) Compute every derived view the dashboard shows:
   - Pages read per month ("March 2024" → pages)
   - Books read per year ("2024" → count)
   - Average pages per book
   - Reading consistency (% of the year's days with a finished book)
   - Last ten books finished / ten longest books

Assumptions:
- Any numeric field that does not parse becomes None ("unknown"). Unknown pages
  are left out of averages and count as 0 in monthly sums.
- Books without a usable DateRead are left out of every date-based view.
- No view reorders or mutates the list it is given.
"""

import logging
import math
import numbers
import os
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

logger = logging.getLogger(__name__)

# ──────────────────────────────────────────────────────────────────────────────
# Config
# ──────────────────────────────────────────────────────────────────────────────

LOCAL_TZ = os.getenv("READING_TZ", "America/Indiana/Indianapolis")

# Default path (overridable via function args)
READS_PATH = Path(os.getenv("READS_CSV", "my-reads.csv"))

TOP_N = 10
DAYS_PER_YEAR = 365

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Raw field names as they appear in the My-Reads table
FIELD_ID      = "BookID"
FIELD_TITLE   = "Title"
FIELD_AUTHOR  = "Author"
FIELD_PAGES   = "NumberOfPages"
FIELD_RATING  = "MyRating"
FIELD_AVG     = "AverageRating"
FIELD_DATE    = "DateRead"


# ──────────────────────────────────────────────────────────────────────────────
# Entities & metrics container
# ──────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Book:
    id: str
    title: str
    author: str
    pages: Optional[int] = None                 # None = unknown / unparsable
    rating: Optional[int] = None                # reader's own rating
    avg_rating: Optional[float] = None          # community average
    completed_date: Optional[datetime] = None   # naive local time


@dataclass(frozen=True)
class MonthlyReading:
    month: str      # "March 2024"
    pages: int


@dataclass(frozen=True)
class YearlyReading:
    year: str       # "2024"
    books: int


@dataclass
class DashboardMetrics:
    total_books: int = 0
    total_pages: int = 0                          # known page counts only

    monthly_pages: List[MonthlyReading] = field(default_factory=list)
    yearly_books: List[YearlyReading] = field(default_factory=list)
    average_pages: int = 0
    consistency: int = 0                          # percent, 0–100

    last_books: List[Book] = field(default_factory=list)      # most recent first
    longest_books: List[Book] = field(default_factory=list)   # most pages first


# ──────────────────────────────────────────────────────────────────────────────
# Helpers — normalization & parsing
# ──────────────────────────────────────────────────────────────────────────────

def _canon_key(s: str) -> str:
    """Lowercase and drop spaces/underscores so 'Number of Pages' == 'NumberOfPages'."""
    return str(s).lower().replace(" ", "").replace("_", "")


def _get(record: Mapping[str, Any], name: str) -> Any:
    """Look up a raw field, tolerating export-style column spellings."""
    if name in record:
        return record[name]
    wanted = _canon_key(name)
    for key, value in record.items():
        if _canon_key(key) == wanted:
            return value
    return None


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _text(value: Any) -> str:
    return "" if _is_missing(value) else str(value)


def _display_title(s: str) -> str:
    """Everything before the first '(' (drops '(Series, #2)' annotations), trimmed."""
    return s.split("(", 1)[0].strip()


def _to_number(value: Any) -> Optional[float]:
    if _is_missing(value) or isinstance(value, bool):
        return None
    num = pd.to_numeric(str(value).strip(), errors="coerce")
    if pd.isna(num) or not math.isfinite(num):
        return None
    return float(num)


def _to_int(value: Any) -> Optional[int]:
    num = _to_number(value)
    return None if num is None else int(num)


# Values pd.to_datetime can treat as a single point in time
_DATE_SCALARS = (str, numbers.Real, date)


def _parse_date(value: Any) -> Optional[datetime]:
    """
    Parse a DateRead value into a naive local datetime.
    Timezone-aware inputs are converted to LOCAL_TZ; naive ones are taken as local.
    """
    if isinstance(value, bool) or not isinstance(value, _DATE_SCALARS) or _is_missing(value):
        return None
    try:
        ts = pd.to_datetime(value, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        logger.debug("Unparsable DateRead %r", value)
        return None
    if pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert(LOCAL_TZ).tz_localize(None)
    return ts.to_pydatetime()


def _round_half_up(x: float) -> int:
    """Round half away from zero (Python's round() is banker's rounding)."""
    return int(Decimal(str(x)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _dated_frame(books: Sequence[Book]) -> pd.DataFrame:
    """Books with a completion date as a frame, input order preserved."""
    df = pd.DataFrame(
        {
            "completed": pd.to_datetime([b.completed_date for b in books]),
            "pages": pd.to_numeric(pd.Series([b.pages for b in books], dtype="object"), errors="coerce"),
        }
    )
    return df.dropna(subset=["completed"]).copy()


# ──────────────────────────────────────────────────────────────────────────────
# Data loading + normalization
# ──────────────────────────────────────────────────────────────────────────────

def load_records(path: Path = READS_PATH) -> List[Dict[str, Any]]:
    """
    Load the exported reading history (CSV) as a list of raw records.
    A missing file yields an empty list so the dashboard can still render.
    """
    path = Path(path)
    if not path.exists():
        logger.warning("Reading history not found at %s; showing an empty dashboard", path)
        return []
    df = pd.read_csv(path, dtype=str, keep_default_na=True)
    df.columns = [c.strip() for c in df.columns]
    records = df.to_dict("records")
    logger.info("Loaded %d records from %s", len(records), path)
    return records


def to_book(record: Mapping[str, Any]) -> Book:
    """Build one Book from a raw record. Unparsable fields become None."""
    book = Book(
        id=_text(_get(record, FIELD_ID)).strip(),
        title=_display_title(_text(_get(record, FIELD_TITLE))),
        author=_text(_get(record, FIELD_AUTHOR)),
        pages=_to_int(_get(record, FIELD_PAGES)),
        rating=_to_int(_get(record, FIELD_RATING)),
        avg_rating=_to_number(_get(record, FIELD_AVG)),
        completed_date=_parse_date(_get(record, FIELD_DATE)),
    )
    for name in ("pages", "rating", "avg_rating", "completed_date"):
        if getattr(book, name) is None:
            logger.debug("Book %r (%s): %s is unknown", book.title, book.id or "no id", name)
    return book


def normalize(records: Iterable[Mapping[str, Any]], dedupe: bool = True) -> List[Book]:
    """
    Normalize raw records into Books, keeping input order.

    With `dedupe`, a record whose (non-empty) id was already seen is dropped;
    the first occurrence wins. Books without an id are always kept.
    """
    books: List[Book] = []
    seen = set()
    for record in records:
        book = to_book(record)
        if dedupe and book.id:
            if book.id in seen:
                logger.debug("Skipping duplicate book id %s", book.id)
                continue
            seen.add(book.id)
        books.append(book)
    return books


# ──────────────────────────────────────────────────────────────────────────────
# Derived views
# ──────────────────────────────────────────────────────────────────────────────

def monthly_pages(books: Sequence[Book], chronological: bool = False) -> List[MonthlyReading]:
    """
    Total pages per "Month Year" label.
    Labels come out in first-appearance order unless `chronological` is set.
    """
    df = _dated_frame(books)
    if df.empty:
        return []
    df["month"] = df["completed"].dt.strftime("%B %Y")
    df["period"] = df["completed"].dt.to_period("M")
    grouped = df.groupby("month", sort=False).agg(
        pages=("pages", "sum"), period=("period", "first")
    )
    if chronological:
        grouped = grouped.sort_values("period", kind="stable")
    return [MonthlyReading(month=str(label), pages=int(row.pages)) for label, row in grouped.iterrows()]


def yearly_books(books: Sequence[Book]) -> List[YearlyReading]:
    """Books finished per year, first-appearance order; undated books are skipped."""
    df = _dated_frame(books)
    if df.empty:
        return []
    years = df["completed"].dt.year.astype(int).astype(str)
    counts = years.groupby(years, sort=False).size()
    return [YearlyReading(year=year, books=int(n)) for year, n in counts.items()]


def average_pages_per_book(books: Sequence[Book]) -> int:
    known = [b.pages for b in books if b.pages is not None]
    if not known:
        return 0
    return _round_half_up(sum(known) / len(known))


def reading_consistency(books: Sequence[Book]) -> int:
    """
    Share of a year's days on which at least one book was finished, in percent.
    Counts distinct calendar days and caps the result at 100.
    """
    days = {b.completed_date.date() for b in books if b.completed_date is not None}
    pct = _round_half_up(len(days) / DAYS_PER_YEAR * 100)
    return max(0, min(100, pct))


def _recency_key(book: Book):
    if book.completed_date is None:
        return (1, timedelta(0), book.id)
    return (0, datetime.max - book.completed_date, book.id)


def _length_key(book: Book):
    if book.pages is None:
        return (1, 0)
    return (0, -book.pages)


def last_n_books(books: Sequence[Book], n: int = TOP_N) -> List[Book]:
    """Most recently finished first (ties by id); undated books sort last."""
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    return sorted(books, key=_recency_key)[:n]


def longest_n_books(books: Sequence[Book], n: int = TOP_N) -> List[Book]:
    """Most pages first, stable for ties; unknown page counts sort last."""
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    return sorted(books, key=_length_key)[:n]


# ──────────────────────────────────────────────────────────────────────────────
# Main dashboard metrics
# ──────────────────────────────────────────────────────────────────────────────

def compute_metrics(books: Sequence[Book], top_n: int = TOP_N) -> DashboardMetrics:
    """
    Compute every dashboard view from one normalized book list.
    - books: output of `normalize`
    - top_n: size of the "last finished" and "longest" lists
    """
    books = tuple(books)
    m = DashboardMetrics()
    m.total_books = len(books)
    m.total_pages = sum(b.pages for b in books if b.pages is not None)

    m.monthly_pages = monthly_pages(books)
    m.yearly_books  = yearly_books(books)
    m.average_pages = average_pages_per_book(books)
    m.consistency   = reading_consistency(books)

    m.last_books    = last_n_books(books, top_n)
    m.longest_books = longest_n_books(books, top_n)

    logger.debug(
        "Metrics: %d books, %d months, %d years, avg %d pages, %d%% consistency",
        m.total_books, len(m.monthly_pages), len(m.yearly_books), m.average_pages, m.consistency,
    )
    return m
