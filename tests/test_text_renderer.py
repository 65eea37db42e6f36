"""Tests for src.adapters.text_renderer."""

from datetime import date

from src.adapters.text_renderer import TextRenderer, format_time_12h
from src.core.view import rebuild_view
from src.data.models import DayWeather, ExternalEvent, Occurrence, OccurrenceKind

SUNDAY = date(2024, 6, 9)
MONDAY = date(2024, 6, 10)


class TestFormatTime:
    def test_afternoon(self):
        assert format_time_12h("13:05") == "1:05 PM"

    def test_midnight_and_noon(self):
        assert format_time_12h("00:00") == "12:00 AM"
        assert format_time_12h("12:30") == "12:30 PM"

    def test_passthrough(self):
        assert format_time_12h("All Day") == "All Day"


class TestRender:
    def _view(self):
        occurrences = [
            Occurrence(id=1, kind=OccurrenceKind.ENTRY, date=MONDAY, title="Swim",
                       time="16:00", template_ref="recur_swim"),
            Occurrence(id=2, kind=OccurrenceKind.ENTRY, date=MONDAY, title="Dentist",
                       time="09:30", assigned_to="ben"),
            Occurrence(id=3, kind=OccurrenceKind.CHORE, date=MONDAY, title="Dishes",
                       completed=True, assigned_to="mom"),
        ]
        external = {MONDAY: [ExternalEvent(day=MONDAY, title="Camp", time="All Day")]}
        return rebuild_view(occurrences, external)

    def test_week_layout(self):
        text = TextRenderer().render(self._view(), SUNDAY)
        lines = text.splitlines()
        assert lines[0] == "Sunday 2024-06-09"
        assert lines[1] == "Monday 2024-06-10"
        assert lines[2] == "  [0] 9:30 AM Dentist (ben)"
        assert lines[3] == "  [1] 4:00 PM Swim ↻"
        assert lines[4] == "  [google] All Day Camp"
        assert lines[5] == "  [0] [x] Dishes (mom)"
        assert "Saturday 2024-06-15" in lines

    def test_weather_header(self):
        weather = DayWeather(day=SUNDAY, temp_max=81.6, temp_min=60.2, code=0,
                             description="Clear sky")
        text = TextRenderer().render(self._view(), SUNDAY, weather)
        assert text.splitlines()[0] == "Weather Sun Jun 09: Clear sky, 82° / 60°"
