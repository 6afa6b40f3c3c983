import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from dietcraft.core.logging_config import get_logger
from dietcraft.core.rules import MAX_CAPS_HEADING_LENGTH, MEAL_TYPES, WEEKDAYS
from dietcraft.models import BulletList, MealRow, MealTable, PlanSection

logger = get_logger(__name__)

DAY_HEADING = re.compile(r"^(DAY [0-9]+|" + "|".join(WEEKDAYS) + ")", re.IGNORECASE)
CAPS_LABEL = re.compile(r"^[A-Z\s]+:")
MARKDOWN_HEADING = re.compile(r"^#{1,3}\s")
CAPITAL_LETTER = re.compile(r"[A-Z]")
MEAL_LINE = re.compile(
    r"^(" + "|".join(re.escape(meal) for meal in MEAL_TYPES) + r")[:\s-]",
    re.IGNORECASE
)
MEAL_FIELD_SEPARATOR = re.compile(r"[;|]")
BULLET_MARKER = re.compile(r"^[-•*]\s")
NUMBER_MARKER = re.compile(r"^[0-9]+[.)]\s")


class LineKind(str, Enum):
    BLANK = "blank"
    HEADING = "heading"
    MEAL = "meal"
    LIST_ITEM = "list_item"
    TEXT = "text"


class ParserState(str, Enum):
    NO_SECTION = "no_section"
    IN_HEADING_SECTION = "in_heading_section"
    IN_TEXT_SECTION = "in_text_section"


def is_heading(line: str) -> bool:
    """Heading heuristics, evaluated on a trimmed line."""
    if DAY_HEADING.match(line):
        return True
    if CAPS_LABEL.match(line):
        return True
    if MARKDOWN_HEADING.match(line):
        return True
    # Known limitation: short all-caps food or brand names read as headings too.
    return (
        len(line) < MAX_CAPS_HEADING_LENGTH
        and line == line.upper()
        and CAPITAL_LETTER.search(line) is not None
    )


def classify_line(line: str) -> LineKind:
    """Classify one line; precedence is heading, meal, list item, then text."""
    stripped = line.strip()
    if not stripped:
        return LineKind.BLANK
    if is_heading(stripped):
        return LineKind.HEADING
    if MEAL_LINE.match(stripped):
        return LineKind.MEAL
    if BULLET_MARKER.match(stripped) or NUMBER_MARKER.match(stripped):
        return LineKind.LIST_ITEM
    return LineKind.TEXT


def heading_title(line: str) -> str:
    title = MARKDOWN_HEADING.sub("", line.strip(), count=1)
    if title.endswith(":"):
        title = title[:-1]
    return title.strip()


def parse_meal_row(line: str) -> Optional[MealRow]:
    """Split a meal line into meal, foods, portions and notes.

    Args:
        line: A trimmed line starting with a meal label.

    Returns:
        The MealRow, or None when the line has no meal label.
    """
    match = MEAL_LINE.match(line)
    if not match:
        return None
    remainder = line[match.end():].strip()
    parts = [part.strip() for part in MEAL_FIELD_SEPARATOR.split(remainder) if part.strip()]
    return MealRow(
        meal=match.group(1),
        foods=parts[0] if parts else remainder,
        portions=parts[1] if len(parts) > 1 else "",
        notes=parts[2] if len(parts) > 2 else ""
    )


def strip_list_marker(line: str) -> str:
    item = BULLET_MARKER.sub("", line.strip(), count=1)
    item = NUMBER_MARKER.sub("", item, count=1)
    return item.strip()


def count_entries(sections: List[PlanSection]) -> int:
    """Count output slots: heading titles, paragraphs, bullet items and meal rows."""
    total = 0
    for section in sections:
        if section.kind == "heading":
            total += 1
        total += len(section.paragraphs)
        if section.meal_table:
            total += len(section.meal_table.rows)
        if section.bullet_list:
            total += len(section.bullet_list.items)
    return total


@dataclass
class _ParseState:
    sections: List[PlanSection] = field(default_factory=list)
    section: Optional[PlanSection] = None
    pending_meals: Optional[List[MealRow]] = None
    pending_bullets: Optional[List[str]] = None

    @property
    def state(self) -> ParserState:
        if self.section is None:
            return ParserState.NO_SECTION
        if self.section.kind == "heading":
            return ParserState.IN_HEADING_SECTION
        return ParserState.IN_TEXT_SECTION

    def ensure_section(self) -> PlanSection:
        """Open an untitled text section when nothing is open yet."""
        if self.state is ParserState.NO_SECTION:
            self.section = PlanSection(kind="text")
        return self.section

    def flush(self) -> None:
        """Attach pending meal rows and bullets to the current section."""
        if self.pending_meals is not None:
            section = self.ensure_section()
            if section.meal_table is not None:
                logger.debug(
                    f"Replacing meal table of {len(section.meal_table.rows)} rows "
                    f"in section {section.title!r}"
                )
            section.meal_table = MealTable(rows=self.pending_meals)
            self.pending_meals = None
        if self.pending_bullets is not None:
            section = self.ensure_section()
            if section.bullet_list is not None:
                logger.debug(
                    f"Replacing bullet list of {len(section.bullet_list.items)} items "
                    f"in section {section.title!r}"
                )
            section.bullet_list = BulletList(items=self.pending_bullets)
            self.pending_bullets = None

    def close_section(self) -> None:
        self.flush()
        if self.state is not ParserState.NO_SECTION:
            self.sections.append(self.section)
            self.section = None


class PlanTextParser:
    def parse(self, content: Optional[str]) -> List[PlanSection]:
        """Structure free-form plan text into ordered sections.

        Single pass over the lines. Headings open sections, meal lines and
        list items accumulate until a blank line, plain text, a heading or
        the end of input flushes them into the open section.

        Args:
            content: Raw plan text; None or empty yields no sections.

        Returns:
            Sections in source order.
        """
        if not content:
            return []

        state = _ParseState()
        for raw_line in content.split("\n"):
            line = raw_line.strip()
            kind = classify_line(line)
            if kind is LineKind.BLANK:
                state.flush()
            elif kind is LineKind.HEADING:
                self._open_heading(state, line)
            elif kind is LineKind.MEAL:
                self._add_meal(state, line)
            elif kind is LineKind.LIST_ITEM:
                self._add_list_item(state, line)
            else:
                self._add_text(state, line)

        state.close_section()
        return state.sections

    def _open_heading(self, state: _ParseState, line: str) -> None:
        state.close_section()
        state.section = PlanSection(kind="heading", title=heading_title(line))

    def _add_meal(self, state: _ParseState, line: str) -> None:
        if state.pending_meals is None:
            state.pending_meals = []
        state.pending_meals.append(parse_meal_row(line))

    def _add_list_item(self, state: _ParseState, line: str) -> None:
        if state.pending_bullets is None:
            state.pending_bullets = []
        state.pending_bullets.append(strip_list_marker(line))

    def _add_text(self, state: _ParseState, line: str) -> None:
        state.flush()
        if state.state is ParserState.NO_SECTION:
            logger.debug("Text before any heading opens an untitled section")
        state.ensure_section().paragraphs.append(line)


plan_parser = PlanTextParser()
