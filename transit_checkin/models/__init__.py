# Transit check-in: store models
# Import all models here so callers can use `from transit_checkin.models import Passenger`

from transit_checkin.models.passenger import Passenger          # noqa
from transit_checkin.models.trip import Trip, Direction          # noqa
from transit_checkin.models.attendance import AttendanceRecord  # noqa
