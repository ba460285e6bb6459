# Database module - timetable document store
from .models import init_db, get_connection
from .operations import TimetableStore
