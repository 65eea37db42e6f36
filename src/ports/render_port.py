"""Render port: abstract interface for turning a view into visual output.

Renderers only read the view and its position indexes; they never mutate
either.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from src.core.view import DashboardView
    from src.data.models import DayWeather


class RenderPort(Protocol):
    def render(
        self,
        view: DashboardView,
        week_start: date,
        weather: DayWeather | None = None,
    ) -> str: ...
