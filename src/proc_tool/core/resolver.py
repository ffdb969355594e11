"""Procedure resolution from free-form call text.

Finds the routine name in text such as ``CALL hr.get_employee(?, ?)`` or
``{? = call get_employee(?)}`` and walks the session's catalog to the
matching procedure. Matching is structural: the first identifier run
(optionally dotted) followed by an opening parenthesis. Resolution is best
effort and yields None on any failure.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import TYPE_CHECKING

import structlog

from proc_tool.core.catalog import ObjectContainer, ProcedureContainer, transform_name

if TYPE_CHECKING:
    from collections.abc import Sequence

    from proc_tool.core.catalog import Procedure, Session


@lru_cache(maxsize=16)
def _call_pattern(separator: str, quote_char: str) -> re.Pattern[str]:
    sep = re.escape(separator)
    if quote_char:
        q = re.escape(quote_char)
        segment = rf"(?:{q}(?:[^{q}]|{q}{q})+{q}|[^\W\d][\w$#]*)"
        lead = rf"(?<![\w$#{q}])"
    else:
        segment = r"[^\W\d][\w$#]*"
        lead = r"(?<![\w$#])"
    return re.compile(rf"{lead}({segment}(?:\s*{sep}\s*{segment})*)\s*\(")


def extract_call_target(
    text: str | None, separator: str = ".", quote_char: str = '"'
) -> str | None:
    """Return the routine name invoked by the call text, or None."""
    if not text:
        return None
    match = _call_pattern(separator, quote_char).search(text)
    if match is None:
        return None
    return match.group(1)


def split_name(raw_name: str, separator: str = ".", quote_char: str = '"') -> list[str]:
    """Split a dotted name into segments, keeping quoted segments intact."""
    segments: list[str] = []
    current: list[str] = []
    quoted = False
    for ch in raw_name:
        if quote_char and ch == quote_char:
            quoted = not quoted
            current.append(ch)
        elif ch == separator and not quoted:
            segments.append("".join(current))
            current = []
        else:
            current.append(ch)
    segments.append("".join(current))
    return segments


def _find_by_names(session: Session, names: Sequence[str]) -> Procedure | None:
    data_source = session.data_source
    container = data_source.root
    if container is None:
        return None

    if len(names) == 1:
        selected = session.selected_containers()
        if selected and isinstance(selected[-1], ObjectContainer):
            container = selected[-1]
    else:
        for segment in names[:-1]:
            child_name = segment.strip()
            if not child_name:
                return None
            child = container.get_child(transform_name(data_source, child_name))
            if not isinstance(child, ObjectContainer):
                return None
            container = child

    proc_name = names[-1].strip()
    if not proc_name or not isinstance(container, ProcedureContainer):
        return None
    return container.get_procedure(transform_name(data_source, proc_name))


def resolve_procedure(session: Session, raw_name: str) -> Procedure | None:
    """Resolve a possibly qualified routine name against the catalog.

    Single-segment names are looked up in the deepest selected container;
    qualified names are walked from the data source root.
    """
    log = structlog.get_logger()
    data_source = session.data_source
    names = split_name(raw_name, data_source.struct_separator, data_source.quote_char)
    try:
        procedure = _find_by_names(session, names)
    except Exception as e:
        log.debug("procedure lookup failed", name=raw_name, error=str(e))
        return None
    if procedure is None:
        log.debug("procedure not found", name=raw_name)
    return procedure


def find_procedure(session: Session, text: str | None) -> Procedure | None:
    """Extract the call target from text and resolve it."""
    data_source = session.data_source
    raw_name = extract_call_target(
        text, data_source.struct_separator, data_source.quote_char
    )
    if raw_name is None:
        return None
    return resolve_procedure(session, raw_name)
