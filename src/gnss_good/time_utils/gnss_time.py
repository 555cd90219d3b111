"""
Calendar and GNSS epoch conversions used to build archive paths and file names.

An ``Epoch`` is an integer Modified Julian Date plus seconds of day. All
conversions go through the integer day count so repeated additions never
drift, and every representation used by the downloader (year/doy,
year/month/day, GPS week/day-of-week) round-trips exactly.
"""
import datetime
from dataclasses import dataclass
from typing import List, Tuple

SECONDS_PER_DAY = 86400
MJD_UNIX_EPOCH = 40587  # 1970-01-01
GPS_START_MJD = 44244  # 1980-01-06, GPS week 0 day 0
GNSS_START_TIME = datetime.datetime(1980, 1, 6, tzinfo=datetime.timezone.utc)
MIN_YEAR = 1901

# (year, month, day, UTC - GPST in seconds). Hand maintained: no leap second
# has been announced after 2017-01-01. Append a row here when IERS Bulletin C
# announces one.
LEAP_SECONDS: List[Tuple[int, int, int, int]] = [
    (2017, 1, 1, -18),
    (2015, 7, 1, -17),
    (2012, 7, 1, -16),
    (2009, 1, 1, -15),
    (2006, 1, 1, -14),
    (1999, 1, 1, -13),
    (1997, 7, 1, -12),
    (1996, 1, 1, -11),
    (1994, 7, 1, -10),
    (1993, 7, 1, -9),
    (1992, 7, 1, -8),
    (1991, 1, 1, -7),
    (1990, 1, 1, -6),
    (1988, 1, 1, -5),
    (1985, 7, 1, -4),
    (1983, 7, 1, -3),
    (1982, 7, 1, -2),
    (1981, 7, 1, -1),
]


@dataclass(frozen=True, order=True)
class Epoch:
    """
    A GNSS instant as (Modified Julian Date, seconds of day).

    Attributes:
        mjd (int): Integer Modified Julian Date.
        sod (float): Seconds of day, always in [0, 86400).
    """

    mjd: int
    sod: float = 0.0

    def __post_init__(self):
        if not isinstance(self.mjd, int):
            raise ValueError(f"mjd must be an integer day count, got {self.mjd!r}")
        if not 0.0 <= self.sod < SECONDS_PER_DAY:
            raise ValueError(f"sod {self.sod} outside [0, {SECONDS_PER_DAY})")

    @classmethod
    def from_date(cls, date: datetime.date | datetime.datetime) -> "Epoch":
        """
        Build an Epoch from a datetime.date or a naive/UTC datetime.datetime.

        Args:
            date (datetime.date | datetime.datetime): The calendar date (and time).
        Returns:
            Epoch: The matching epoch.
        """
        if isinstance(date, datetime.datetime):
            return ymdhms_to_epoch(
                date.year,
                date.month,
                date.day,
                date.hour,
                date.minute,
                date.second + date.microsecond * 1e-6,
            )
        return ymdhms_to_epoch(date.year, date.month, date.day)

    def to_date(self) -> datetime.date:
        year, month, day, *_ = epoch_to_ymdhms(self)
        return datetime.date(year, month, day)

    def __str__(self) -> str:
        year, month, day, hour, minute, second = epoch_to_ymdhms(self)
        return f"{year:04d}-{month:02d}-{day:02d} {hour:02d}:{minute:02d}:{second:06.3f}"


def is_leap_year(year: int) -> bool:
    """
    Gregorian leap year rule: divisible by 4, not by 100 unless divisible by 400.

    Examples:
        >>> is_leap_year(2000), is_leap_year(1900), is_leap_year(2024), is_leap_year(2023)
        (True, False, True, False)
    """
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def days_in_year(year: int) -> int:
    return 366 if is_leap_year(year) else 365


def _days_in_month(year: int, month: int) -> int:
    if month == 2:
        return 29 if is_leap_year(year) else 28
    return 30 if month in (4, 6, 9, 11) else 31


def _check_year(year: int) -> None:
    if year < MIN_YEAR:
        raise ValueError(f"Year {year} is before {MIN_YEAR}")


def _check_ymd(year: int, month: int, day: int) -> None:
    _check_year(year)
    if not 1 <= month <= 12:
        raise ValueError(f"Month {month} outside 1..12")
    if not 1 <= day <= _days_in_month(year, month):
        raise ValueError(f"Day {day} outside 1..{_days_in_month(year, month)} for {year}-{month:02d}")


def _check_doy(year: int, doy: int) -> None:
    _check_year(year)
    if not 1 <= doy <= days_in_year(year):
        raise ValueError(f"Day of year {doy} outside 1..{days_in_year(year)} for {year}")


def _ymd_to_mjd(year: int, month: int, day: int) -> int:
    # Proleptic Gregorian day count, March-based year so the leap day is last
    y = year - 1 if month <= 2 else year
    era = y // 400
    yoe = y - era * 400
    mp = (month + 9) % 12
    doy = (153 * mp + 2) // 5 + day - 1
    doe = yoe * 365 + yoe // 4 - yoe // 100 + doy
    return era * 146097 + doe - 719468 + MJD_UNIX_EPOCH


def _mjd_to_ymd(mjd: int) -> Tuple[int, int, int]:
    z = mjd - MJD_UNIX_EPOCH + 719468
    era = z // 146097
    doe = z - era * 146097
    yoe = (doe - doe // 1460 + doe // 36524 - doe // 146096) // 365
    doy = doe - (365 * yoe + yoe // 4 - yoe // 100)
    mp = (5 * doy + 2) // 153
    day = doy - (153 * mp + 2) // 5 + 1
    month = mp + 3 if mp < 10 else mp - 9
    year = yoe + era * 400 + (1 if month <= 2 else 0)
    return year, month, day


def date_to_day_of_year(year: int, month: int, day: int) -> int:
    """
    Convert a calendar date to day of year.

    Args:
        year (int): Four digit year (>= 1901).
        month (int): Month 1..12.
        day (int): Day of month.
    Returns:
        int: Day of year, 1..366.
    Raises:
        ValueError: If the date is not a valid Gregorian date.
    Examples:
        >>> date_to_day_of_year(2021, 2, 14)
        45
    """
    _check_ymd(year, month, day)
    return _ymd_to_mjd(year, month, day) - _ymd_to_mjd(year, 1, 1) + 1


def day_of_year_to_date(year: int, doy: int) -> Tuple[int, int]:
    """
    Convert (year, day of year) to (month, day).

    Raises:
        ValueError: If doy is outside the year.
    Examples:
        >>> day_of_year_to_date(2020, 60)
        (2, 29)
    """
    _check_doy(year, doy)
    _, month, day = _mjd_to_ymd(_ymd_to_mjd(year, 1, 1) + doy - 1)
    return month, day


def hms_to_sod(hour: int, minute: int, second: float) -> float:
    return hour * 3600.0 + minute * 60.0 + second


def sod_to_hms(sod: float) -> Tuple[int, int, float]:
    hour = int(sod // 3600)
    minute = int((sod - hour * 3600) // 60)
    return hour, minute, sod - hour * 3600 - minute * 60


def ymdhms_to_epoch(
    year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: float = 0.0
) -> Epoch:
    """
    Build an Epoch from calendar date and time of day.

    Raises:
        ValueError: If the date is invalid or the time of day is outside the day.
    Examples:
        >>> ymdhms_to_epoch(1980, 1, 6)
        Epoch(mjd=44244, sod=0.0)
    """
    _check_ymd(year, month, day)
    return Epoch(_ymd_to_mjd(year, month, day), hms_to_sod(hour, minute, second))


def epoch_to_ymdhms(epoch: Epoch) -> Tuple[int, int, int, int, int, float]:
    year, month, day = _mjd_to_ymd(epoch.mjd)
    hour, minute, second = sod_to_hms(epoch.sod)
    return year, month, day, hour, minute, second


def yrdoy_to_epoch(year: int, doy: int) -> Epoch:
    """
    Build the epoch at 00:00:00 of (year, doy).

    Raises:
        ValueError: If doy is outside the year.
    """
    _check_doy(year, doy)
    return Epoch(_ymd_to_mjd(year, 1, 1) + doy - 1, 0.0)


def epoch_to_yrdoy(epoch: Epoch) -> Tuple[int, int]:
    """
    Return (four digit year, day of year) for an epoch.

    Examples:
        >>> epoch_to_yrdoy(ymdhms_to_epoch(2021, 2, 14))
        (2021, 45)
    """
    year, _, _ = _mjd_to_ymd(epoch.mjd)
    return year, epoch.mjd - _ymd_to_mjd(year, 1, 1) + 1


def epoch_to_gps_week(epoch: Epoch) -> Tuple[int, int]:
    """
    Convert an epoch to GPS week and day of week (0 = Sunday).

    The GPS week is the number of whole weeks since 1980-01-06T00:00:00.

    Args:
        epoch (Epoch): The epoch to convert.
    Returns:
        Tuple[int, int]: (GPS week, day of week).
    Examples:
        >>> epoch_to_gps_week(ymdhms_to_epoch(2021, 3, 24))
        (2150, 3)
    """
    days = epoch.mjd - GPS_START_MJD
    week = days // 7
    return week, days - 7 * week


def gps_week_to_epoch(week: int, dow: int = 0, sod: float = 0.0) -> Epoch:
    """
    Rebuild an epoch from (GPS week, day of week, seconds of day).

    Raises:
        ValueError: If dow is outside 0..6.
    """
    if not 0 <= dow <= 6:
        raise ValueError(f"Day of week {dow} outside 0..6")
    return Epoch(GPS_START_MJD + 7 * week + dow, sod)


def add_seconds(epoch: Epoch, delta: float) -> Epoch:
    """
    Add seconds to an epoch, carrying whole days into the day count.

    Seconds of day of the result always lie in [0, 86400).

    Args:
        epoch (Epoch): Start epoch.
        delta (float): Seconds to add, may be negative.
    Returns:
        Epoch: The shifted epoch.
    Examples:
        >>> add_seconds(Epoch(59000, 0.0), -1)
        Epoch(mjd=58999, sod=86399.0)
    """
    sod = epoch.sod + delta
    days = int(sod // SECONDS_PER_DAY)
    sod -= days * SECONDS_PER_DAY
    if sod >= SECONDS_PER_DAY:
        # float rounding on large negative deltas
        days += 1
        sod -= SECONDS_PER_DAY
    return Epoch(epoch.mjd + days, float(sod))


def add_days(epoch: Epoch, days: int) -> Epoch:
    return Epoch(epoch.mjd + days, epoch.sod)


def time_diff(t1: Epoch, t0: Epoch) -> float:
    """Seconds from t0 to t1."""
    return (t1.mjd - t0.mjd) * float(SECONDS_PER_DAY) + (t1.sod - t0.sod)


def utc_offset_seconds(epoch: Epoch) -> int:
    """
    Return UTC - GPST in seconds in effect at ``epoch`` (a UTC instant).

    Looks up the most recent row of ``LEAP_SECONDS`` at or before the epoch.
    The table ends at 2017-01-01 (-18 s); later epochs get -18 until the table
    is extended by hand.

    Examples:
        >>> utc_offset_seconds(ymdhms_to_epoch(2016, 12, 31))
        -17
        >>> utc_offset_seconds(ymdhms_to_epoch(2017, 1, 1))
        -18
    """
    for year, month, day, offset in LEAP_SECONDS:
        if time_diff(epoch, ymdhms_to_epoch(year, month, day)) >= 0.0:
            return offset
    return 0


def gpst_to_utc(epoch: Epoch) -> Epoch:
    for year, month, day, offset in LEAP_SECONDS:
        shifted = add_seconds(epoch, offset)
        if time_diff(shifted, ymdhms_to_epoch(year, month, day)) >= 0.0:
            return shifted
    return epoch


def utc_to_gpst(epoch: Epoch) -> Epoch:
    return add_seconds(epoch, -utc_offset_seconds(epoch))


def yyyy_to_yy(year: int) -> int:
    return year % 100


def yy_to_yyyy(yy: int) -> int:
    """Two digit year to four digits: 00-50 -> 20yy, 51-99 -> 19yy."""
    if not 0 <= yy <= 99:
        raise ValueError(f"Two digit year {yy} outside 0..99")
    return 2000 + yy if yy <= 50 else 1900 + yy


def hour_letter(hour: int) -> str:
    """
    RINEX 2 session letter for an hour: 0 -> 'a', 1 -> 'b', ... 23 -> 'x'.
    """
    if not 0 <= hour <= 23:
        raise ValueError(f"Hour {hour} outside 0..23")
    return chr(ord("a") + hour)


def daily_epochs(start: Epoch, ndays: int) -> List[Epoch]:
    """Epochs of ``ndays`` consecutive days, each one day after the previous."""
    epochs = []
    epoch = start
    for _ in range(ndays):
        epochs.append(epoch)
        epoch = add_seconds(epoch, SECONDS_PER_DAY)
    return epochs
