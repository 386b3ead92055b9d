"""Tests for src/output.py."""

from pathlib import Path

import pytest

from src.models import Author, Outcome, OutcomeKind, SolveResult, Transcript, Turn
from src.output import _slug, save_to_file


def test_slug_basic():
    assert _slug("What is 2+2?") == "what-is-22"


def test_slug_max_len():
    assert len(_slug("a" * 100)) <= 40


def test_slug_special_chars():
    result = _slug("Sort a list (in place)!")
    assert "(" not in result
    assert "!" not in result


def _result(sample_team, kind: OutcomeKind, text: str) -> SolveResult:
    transcript = Transcript()
    transcript.append(Turn(Author.USER, "User", "What is 2+2?"))
    transcript.append(Turn(Author.LEADER, "Leader", "Member1, Member2, please confirm this solution is accurate: 4"))
    transcript.append(Turn(Author.MEMBER1, "Member1", "Approved"))
    return SolveResult(
        problem="What is 2+2?",
        transcript=transcript,
        outcome=Outcome(kind, text),
        rounds_run=1,
        total_duration_sec=3.2,
        team=sample_team.roster(),
    )


@pytest.fixture
def finalized_result(sample_team) -> SolveResult:
    return _result(sample_team, OutcomeKind.FINALIZED, "The answer is 4.")


def test_save_to_file_creates_file(tmp_path: Path, finalized_result):
    saved = save_to_file(finalized_result, tmp_path / "output")
    assert saved.exists()
    assert saved.suffix == ".md"
    assert saved.name.endswith("_what-is-22.md")


def test_save_to_file_creates_output_dir(tmp_path: Path, finalized_result):
    output_dir = tmp_path / "nested" / "output"
    save_to_file(finalized_result, output_dir)
    assert output_dir.exists()


def test_save_to_file_content(tmp_path: Path, finalized_result):
    content = save_to_file(finalized_result, tmp_path).read_text(encoding="utf-8")
    assert "# AI Team: What is 2+2?" in content
    assert "Leader (leader-model)" in content
    assert "### Member1" in content
    assert "## Solution Finalized" in content
    assert content.index("### User") < content.index("### Leader") < content.index("### Member1")
    assert "The answer is 4." in content


def test_save_to_file_fallback_is_labelled(tmp_path: Path, sample_team):
    result = _result(sample_team, OutcomeKind.FALLBACK, "Maybe 4?")
    content = save_to_file(result, tmp_path).read_text(encoding="utf-8")
    assert "Unable to fully resolve. Last attempt:\nMaybe 4?" in content
    assert "**Outcome:** fallback" in content
