# Utility functions
from .time_normalizer import normalize_time, normalize_range, time_to_minutes
from .semester_logic import current_semester, current_academic_year, format_time
