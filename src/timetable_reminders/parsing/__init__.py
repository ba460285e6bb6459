# Parsing module - model output to courses
from .entry_parser import (
    parse_entries,
    parse_model_output,
    parse_text_grid,
    extract_metadata,
    ParsedEntry,
    ParseResult,
)
from .aggregator import aggregate, build_timetable, replace_session
from .response_cleaner import RawEntry, extract_json_payload
