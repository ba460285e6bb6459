"""Tests for parsing model output into timetable entries."""

import json

import pytest

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from timetable_reminders.models import SessionKind, Weekday
from timetable_reminders.parsing.entry_parser import (
    extract_metadata,
    parse_entries,
    parse_model_output,
    parse_text_grid,
)
from timetable_reminders.parsing.patterns import match_subject
from timetable_reminders.parsing.response_cleaner import (
    RawEntry,
    detect_shape,
    extract_json_payload,
    payload_to_entries,
)


# Sample responses from the vision model
MOCK_ENTRIES_RESPONSE = json.dumps({
    "entries": [
        {
            "day": "Monday",
            "subject": "STQA(ASD)",
            "time": "13:15-14:10",
            "location": "203-A",
            "instructor": None,
            "type": "Lecture"
        },
        {
            "day": "Tuesday",
            "subject": "BDA(SSV) 203-A",
            "time": "09:30-10:25",
            "location": None,
            "instructor": None,
            "type": "Lab"
        },
        {
            "day": "Tuesday",
            "subject": "LUNCH BREAK",
            "time": "11:20-12:20",
            "location": None,
            "instructor": None,
            "type": None
        }
    ]
})

MOCK_COURSES_RESPONSE = json.dumps({
    "courses": [
        {
            "courseCode": "INS",
            "courseName": "Information and Network Security",
            "instructor": "MAI",
            "schedule": [
                {"day": "Wednesday", "startTime": "10:25", "endTime": "11:20",
                 "location": "172(C8)", "type": "Lecture"},
                {"day": "Friday", "startTime": "02:30", "endTime": "03:25",
                 "location": "172(C8)", "type": "Tutorial"}
            ]
        }
    ],
    "metadata": {"semester": "7TH", "academicYear": "2024-25",
                 "lastUpdated": "2024-10-17T09:00:00"}
})

MOCK_GRID_TEXT = """PARUL UNIVERSITY
B.TECH 7TH SEMESTER 2024-25
TIME MONDAY TUESDAY WEDNESDAY
09:30-10:25
STQA(ASD)
BDA(SSV)
CPS(VAT)
11:20-12:20
LUNCH
LUNCH
12:20-01:15
7A12:CS:TDPIT4:172(C8) 7A12-1:STQA(ASD):203-A
INS(MAI)
CLASSROOM 203-A
SUBJECT CODE LIST
STQA(XYZ)
"""


def entry(**kwargs) -> RawEntry:
    """Build a raw entry with Monday/13:15-14:10 defaults."""
    defaults = {"day": "Monday", "subject": "STQA(ASD)", "time": "13:15-14:10"}
    defaults.update(kwargs)
    return RawEntry(**defaults)


class TestExtractJsonPayload:
    """Tests for recovering JSON from model responses."""

    def test_plain_json(self):
        """Plain JSON decodes."""
        payload = extract_json_payload(MOCK_ENTRIES_RESPONSE)
        assert len(payload["entries"]) == 3

    def test_code_fence(self):
        """Markdown code fences are stripped."""
        payload = extract_json_payload("```json\n" + MOCK_ENTRIES_RESPONSE + "\n```")
        assert detect_shape(payload) == "entries"

    def test_surrounding_prose(self):
        """Prose around the JSON object is ignored."""
        response = "Here is the timetable:\n" + MOCK_COURSES_RESPONSE + "\nLet me know!"
        payload = extract_json_payload(response)
        assert detect_shape(payload) == "courses"

    def test_bare_array(self):
        """A bare array of entries decodes as a list."""
        response = "Result: " + json.dumps([{"day": "Monday"}, {"day": "Tuesday"}])
        payload = extract_json_payload(response)
        assert isinstance(payload, list)
        assert len(payload) == 2

    def test_invalid_json(self):
        """Text without JSON returns None."""
        assert extract_json_payload("not valid json") is None
        assert extract_json_payload("") is None
        assert extract_json_payload(None) is None


class TestRawEntry:
    """Tests for raw entry validation at the boundary."""

    def test_missing_fields_tolerated(self):
        """Missing and null fields become None."""
        raw = RawEntry.from_dict({"day": "Monday", "subject": "STQA"})
        assert raw.time is None
        assert raw.instructor is None

    def test_start_end_fields_join(self):
        """start_time/end_time stand in for time."""
        raw = RawEntry.from_dict({"day": "Mon", "subject": "BDA",
                                  "start_time": "09:30", "end_time": "10:25"})
        assert raw.time == "09:30-10:25"

    def test_aliases(self):
        """Alternate keys (subject_code, room, lecturer) are accepted."""
        raw = RawEntry.from_dict({"day": "Monday", "subject_code": "BITP 1113",
                                  "room": "BK13", "lecturer": "DR ZAHRIAH",
                                  "class_type": "LEC", "time": "08:00-10:00"})
        assert raw.subject == "BITP 1113"
        assert raw.location == "BK13"
        assert raw.instructor == "DR ZAHRIAH"
        assert raw.type == "LEC"

    def test_rejects_nested(self):
        """Nested structures in a field reject the entry."""
        assert RawEntry.from_dict({"day": ["Monday"], "subject": "STQA"}) is None

    def test_rejects_non_object(self):
        """Non-object items are rejected."""
        assert RawEntry.from_dict("Monday STQA") is None

    def test_unrecognized_shape(self):
        """Unknown payload shapes yield no entries."""
        assert payload_to_entries({"data": []}) == ([], 0)


class TestSubjectPatterns:
    """Tests for the ordered subject matchers."""

    def test_abbreviation_with_instructor(self):
        """STQA(ASD) splits code and instructor."""
        name, match = match_subject("STQA(ASD)")
        assert name == "abbreviation"
        assert match.code == "STQA"
        assert match.instructor == "ASD"
        assert match.location is None

    def test_abbreviation_with_room(self):
        """INS(MAI) 172(C8) keeps the room."""
        _, match = match_subject("INS(MAI) 172(C8)")
        assert (match.code, match.instructor, match.location) == ("INS", "MAI", "172(C8)")

    def test_grid_code(self):
        """Batch:code:instructor:room cells."""
        name, match = match_subject("7A12:CS:TDPIT4:172(C8)")
        assert name == "grid_code"
        assert (match.code, match.instructor, match.location) == ("CS", "TDPIT4", "172(C8)")

    def test_batch_split(self):
        """Batch-split cells."""
        name, match = match_subject("7A12-1:STQA(ASD):203-A")
        assert name == "batch_split"
        assert (match.code, match.instructor, match.location) == ("STQA", "ASD", "203-A")

    def test_catalog_code(self):
        """Catalog codes keep their digits."""
        name, match = match_subject("BITP 1113")
        assert name == "catalog_code"
        assert match.code == "BITP 1113"

    def test_catalog_code_with_lecturer(self):
        """Catalog codes may carry a lecturer in parentheses."""
        _, match = match_subject("BITM1123 (Dr Najwan)")
        assert match.code == "BITM1123"
        assert match.instructor == "Dr Najwan"

    @pytest.mark.parametrize("text", ["", None, "Software Testing and QA", "LIBRARY", "???", "self", "Study", "Lab"])
    def test_no_match(self, text):
        """Unrecognized subjects match nothing."""
        assert match_subject(text) == (None, None)


class TestParseEntries:
    """Tests for entry validation and exclusion rules."""

    def test_valid_entry(self):
        """A well-formed entry becomes a session."""
        result = parse_entries([entry(location="203-A", type="Lecture")])
        assert len(result.entries) == 1
        parsed = result.entries[0]
        assert parsed.code == "STQA"
        assert parsed.instructor == "ASD"
        assert parsed.name == "Software Testing and Quality Assurance"
        assert parsed.session.day == Weekday.MONDAY
        assert parsed.session.start_time == "13:15"
        assert parsed.session.end_time == "14:10"
        assert parsed.session.location == "203-A"
        assert parsed.session.kind == SessionKind.LECTURE

    def test_afternoon_times_normalized(self):
        """Both halves of a 12-hour grid range are normalized."""
        result = parse_entries([entry(time="01:15-02:10")])
        session = result.entries[0].session
        assert (session.start_time, session.end_time) == ("13:15", "14:10")

    @pytest.mark.parametrize("subject", ["STQA(ASD)", "BDA", "Physics Lab", "7A12:CS:TDPIT4:172(C8)"])
    def test_lunch_slot_excluded_regardless_of_subject(self, subject):
        """Anything in the 11:20-12:20 slot is excluded."""
        result = parse_entries([entry(subject=subject, time="11:20-12:20")])
        assert result.entries == []
        assert result.excluded == 1

    def test_lunch_slot_excluded_in_twelve_hour_form(self):
        """The lunch slot is compared after normalization."""
        result = parse_entries([entry(time="11:20 AM - 12:20 PM")])
        assert result.excluded == 1

    @pytest.mark.parametrize("subject, kind", [
        ("LUNCH", None),
        ("Recess", None),
        ("STQA(ASD)", "Short Break"),
        ("Tea break", "Lecture"),
    ])
    def test_break_keywords_excluded(self, subject, kind):
        """Lunch, recess and break text is excluded at any time."""
        result = parse_entries([entry(subject=subject, type=kind, time="14:30-15:25")])
        assert result.entries == []
        assert result.excluded == 1

    def test_neighbouring_slot_not_excluded(self):
        """Only the exact lunch range is excluded."""
        result = parse_entries([entry(time="11:20-12:15"), entry(time="10:25-11:20")])
        assert len(result.entries) == 2
        assert result.excluded == 0

    def test_unknown_day_discarded(self):
        """Unknown day names are discarded."""
        result = parse_entries([entry(day="Funday")])
        assert result.discarded == 1

    def test_missing_time_discarded(self):
        """Entries without a time range are discarded, not defaulted."""
        result = parse_entries([entry(time=None), entry(time="morning")])
        assert result.entries == []
        assert result.discarded == 2

    def test_unrecognized_subject_discarded(self):
        """Subjects matching no pattern are discarded."""
        result = parse_entries([entry(subject="Software Testing and QA")])
        assert result.discarded == 1

    @pytest.mark.parametrize("subject", ["LIBRARY / SELF STUDY", "SELF STUDY", "PROJECT", "Library"])
    def test_non_class_cells_discarded(self, subject):
        """Library, self-study and project cells are not classes."""
        result = parse_entries([entry(subject=subject)])
        assert result.entries == []
        assert result.discarded == 1

    def test_start_not_before_end_discarded(self):
        """Ranges that do not move forward are discarded."""
        result = parse_entries([entry(time="14:10-13:15")])
        assert result.discarded == 1

    def test_instructor_fallbacks(self):
        """Instructor comes from the subject, then the field, then TBD."""
        result = parse_entries([
            entry(subject="BDA", instructor="SSV"),
            entry(subject="CPS"),
        ])
        assert result.entries[0].instructor == "SSV"
        assert result.entries[1].instructor == "TBD"

    def test_location_from_subject_when_missing(self):
        """Room embedded in the subject fills a missing location."""
        result = parse_entries([entry(subject="BDA(SSV) 203-A")])
        assert result.entries[0].session.location == "203-A"

    def test_counts(self):
        """Diagnostic counts add up."""
        result = parse_entries([
            entry(),
            entry(day="Someday"),
            entry(time="11:20-12:20"),
        ])
        assert (len(result.entries), result.discarded, result.excluded) == (1, 1, 1)
        assert result.total == 3


class TestParseModelOutput:
    """Tests for end-to-end model output parsing."""

    def test_entries_shape(self):
        """Canonical entries shape parses and excludes lunch."""
        result = parse_model_output(MOCK_ENTRIES_RESPONSE)
        codes = sorted(e.code for e in result.entries)
        assert codes == ["BDA", "STQA"]
        assert result.excluded == 1

    def test_courses_shape(self):
        """Course objects with schedules are flattened."""
        result = parse_model_output(MOCK_COURSES_RESPONSE)
        assert len(result.entries) == 2
        friday = [e for e in result.entries if e.session.day == Weekday.FRIDAY][0]
        assert friday.code == "INS"
        assert friday.instructor == "MAI"
        assert friday.session.start_time == "14:30"
        assert friday.session.kind == SessionKind.TUTORIAL

    def test_bare_list_shape(self):
        """A bare JSON list of entries is accepted."""
        response = json.dumps([{"day": "Thursday", "subject": "CPS(VAT)", "time": "10:25-11:20"}])
        result = parse_model_output(response)
        assert result.entries[0].code == "CPS"

    def test_invalid_items_counted(self):
        """Items of the wrong shape count as discarded."""
        response = json.dumps({"entries": ["STQA Monday", {"day": "Monday", "subject": "BDA",
                                                            "time": "09:30-10:25"}]})
        result = parse_model_output(response)
        assert len(result.entries) == 1
        assert result.discarded == 1

    def test_empty_output(self):
        """Empty output parses to nothing."""
        result = parse_model_output("")
        assert result.entries == []

    def test_raw_text_falls_back_to_grid(self):
        """Non-JSON output goes through the grid text parser."""
        result = parse_model_output(MOCK_GRID_TEXT)
        codes = sorted({e.code for e in result.entries})
        assert codes == ["BDA", "CPS", "CS", "INS", "STQA"]
        assert result.excluded == 2


class TestParseTextGrid:
    """Tests for the raw OCR grid fallback."""

    def test_cells_follow_days(self):
        """Lines after a slot are Monday, Tuesday, ... in order."""
        entries = parse_text_grid(MOCK_GRID_TEXT)
        first_slot = [e for e in entries if e.time == "09:30-10:25"]
        assert [(e.day, e.subject) for e in first_slot] == [
            ("Monday", "STQA(ASD)"),
            ("Tuesday", "BDA(SSV)"),
            ("Wednesday", "CPS(VAT)"),
        ]

    def test_multiple_tokens_per_cell(self):
        """A cell line can hold several subject tokens for the same day."""
        entries = parse_text_grid(MOCK_GRID_TEXT)
        monday_afternoon = [e.subject for e in entries
                            if e.time == "12:20-01:15" and e.day == "Monday"]
        assert monday_afternoon == ["7A12:CS:TDPIT4:172(C8)", "7A12-1:STQA(ASD):203-A"]

    def test_stops_at_footer(self):
        """Lines after the CLASSROOM footer are ignored."""
        entries = parse_text_grid(MOCK_GRID_TEXT)
        assert all(e.subject != "STQA(XYZ)" for e in entries)

    def test_non_class_cell_kept_whole(self):
        """A library cell stays one entry instead of one per word."""
        entries = parse_text_grid("DAY MONDAY TUESDAY\n09:30-10:25\nLIBRARY / SELF STUDY\nSTQA(ASD)\nCLASSROOM")
        assert [(e.day, e.subject) for e in entries] == [
            ("Monday", "LIBRARY / SELF STUDY"),
            ("Tuesday", "STQA(ASD)"),
        ]

    def test_no_words_become_courses(self):
        """Free-period text in the grid yields no course codes."""
        text = (
            "DAY MONDAY TUESDAY WEDNESDAY\n"
            "09:30-10:25\n"
            "LIBRARY / SELF STUDY\n"
            "STQA(ASD)\n"
            "Free period\n"
            "CLASSROOM"
        )
        result = parse_model_output(text)
        assert sorted({e.code for e in result.entries}) == ["STQA"]
        assert result.discarded == 3

    def test_no_grid(self):
        """Text without a day header yields nothing."""
        assert parse_text_grid("09:30-10:25\nSTQA(ASD)") == []


class TestExtractMetadata:
    """Tests for semester and academic year labels."""

    def test_from_text(self):
        """Labels are read from raw text."""
        assert extract_metadata(MOCK_GRID_TEXT) == {"semester": "7TH", "academic_year": "2024-25"}

    def test_from_json(self):
        """Labels come from the JSON metadata object, not from dates."""
        assert extract_metadata(MOCK_COURSES_RESPONSE) == {
            "semester": "7TH", "academic_year": "2024-25"
        }

    def test_json_without_metadata(self):
        """JSON output without metadata gives no labels."""
        assert extract_metadata(MOCK_ENTRIES_RESPONSE) == {}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
