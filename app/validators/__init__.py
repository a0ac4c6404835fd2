"""
app/validators package marker.
"""

from app.validators.date_interpreter import DateFormatError, parse_csv_date, parse_optional_csv_date
from app.validators.infraction_row_validator import InfractionColumn, InfractionRowValidator

__all__ = [
    "DateFormatError",
    "InfractionColumn",
    "InfractionRowValidator",
    "parse_csv_date",
    "parse_optional_csv_date",
]
