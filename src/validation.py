"""Problem text validation at the system boundary, before any agent is called."""


class ProblemValidationError(ValueError):
    """Raised when a submitted problem is unusable. Message is safe to show to users."""


def validate_problem(problem: object, max_chars: int | None = None) -> str:
    """Return the problem unchanged if it is a non-blank string within max_chars.

    Raises:
        ProblemValidationError: If the problem is missing, not a string,
            empty or whitespace-only, or longer than max_chars.
    """
    if not isinstance(problem, str) or not problem.strip():
        if max_chars is not None:
            raise ProblemValidationError(
                f"Problem cannot be empty or exceed {max_chars} characters"
            )
        raise ProblemValidationError("Problem cannot be empty")
    if max_chars is not None and len(problem) > max_chars:
        raise ProblemValidationError(f"Problem cannot be empty or exceed {max_chars} characters")
    return problem
