"""Marker-based signals in free text: approval requests, approvals, finalized solutions.

All functions here are pure. Ambiguous or malformed signals read as "not yet",
never as errors.
"""

import re

from src.models import PhaseDecision

APPROVAL_REQUEST_MARKER = "please confirm this solution is accurate:"
FINALIZED_START_MARKER = "SOLUTION FINALIZED:"
FINALIZED_END_MARKER = "x019898199281x7:"

_APPROVAL_RE = re.compile(r"\b(?:approved|approve|i approve)\b", re.IGNORECASE)
_FINALIZED_RE = re.compile(
    re.escape(FINALIZED_START_MARKER) + r"(.*?)" + re.escape(FINALIZED_END_MARKER),
    re.DOTALL,
)


def is_approval_request(leader_text: str) -> bool:
    return APPROVAL_REQUEST_MARKER in leader_text


def is_finalized(leader_text: str) -> bool:
    """Both finalization markers present, start marker before an end marker."""
    return _FINALIZED_RE.search(leader_text) is not None


def extract_finalized_body(leader_text: str) -> str | None:
    """Return the trimmed text between the first start marker and the next end marker.

    None when either marker is missing, they appear in the wrong order, or
    nothing but whitespace sits between them.
    """
    match = _FINALIZED_RE.search(leader_text)
    if match is None:
        return None
    body = match.group(1).strip()
    return body or None


def classify_phase(leader_text: str) -> PhaseDecision:
    """Classify a Leader turn.

    A turn can be finalized yet carry no body (empty span between the
    markers); callers treat that as an ordinary turn.
    """
    return PhaseDecision(
        is_approval_request=is_approval_request(leader_text),
        is_finalized=is_finalized(leader_text),
        finalized_body=extract_finalized_body(leader_text),
    )


def is_approval(member_text: str | None) -> bool:
    """True when a Member reply approves, as a whole word ("disapproved" does not count)."""
    if not member_text:
        return False
    return _APPROVAL_RE.search(member_text) is not None
