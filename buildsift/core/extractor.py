"""Turn a diagnostic-tagged line into a structured ``Diagnostic``."""

from __future__ import annotations

from buildsift.models.diagnostics import (
    Diagnostic,
    DiagnosticCategory,
    DiagnosticSeverity,
)

FIELD_DELIMITER = ": "


def extract_diagnostic(
    line: str, severity: DiagnosticSeverity, line_number: int
) -> Diagnostic:
    """Split *line* into location and message.

    The first ``": "``-delimited segment is the location; the remaining
    segments are rejoined with ``": "`` so colons inside the message
    survive.  The severity keyword that follows the location
    (``error``/``warning``) is not part of the message.  A line without
    the delimiter yields the whole line as the location and an empty
    message.  Never raises.

    >>> d = extract_diagnostic(
    ...     "/a/b.swift:10:3: error: type mismatch: expected Int",
    ...     DiagnosticSeverity.ERROR,
    ...     1,
    ... )
    >>> d.location, d.message
    ('/a/b.swift:10:3', 'type mismatch: expected Int')
    """
    segments = line.split(FIELD_DELIMITER)
    location = segments[0].strip()
    rest = segments[1:]
    if rest and rest[0].strip() == severity.value:
        rest = rest[1:]
    return Diagnostic(
        severity=severity,
        category=DiagnosticCategory.BUILD,
        message=FIELD_DELIMITER.join(rest),
        location=location,
        line_number=line_number,
    )
