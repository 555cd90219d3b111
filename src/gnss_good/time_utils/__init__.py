from .gnss_time import (
    Epoch,
    add_days,
    add_seconds,
    date_to_day_of_year,
    day_of_year_to_date,
    epoch_to_gps_week,
    epoch_to_yrdoy,
    epoch_to_ymdhms,
    gps_week_to_epoch,
    hour_letter,
    is_leap_year,
    utc_offset_seconds,
    yrdoy_to_epoch,
    ymdhms_to_epoch,
)

__all__ = [
    "Epoch",
    "add_days",
    "add_seconds",
    "date_to_day_of_year",
    "day_of_year_to_date",
    "epoch_to_gps_week",
    "epoch_to_yrdoy",
    "epoch_to_ymdhms",
    "gps_week_to_epoch",
    "hour_letter",
    "is_leap_year",
    "utc_offset_seconds",
    "yrdoy_to_epoch",
    "ymdhms_to_epoch",
]
