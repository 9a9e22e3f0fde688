"""
Exception types for studymode.
"""


class StudyModeError(Exception):
    """Base class for studymode errors."""

    pass


class ConfigMalformedError(StudyModeError):
    """Settings data could not be interpreted at all (e.g. not JSON)."""

    pass


class UnknownFieldError(ConfigMalformedError, KeyError):
    """A settings field name outside the schema."""

    def __init__(self, field: str) -> None:
        super().__init__(field)
        self.field = field

    def __str__(self) -> str:
        return f"Unknown settings field: {self.field!r}"


class TargetUnavailableError(StudyModeError):
    """The addressed tab has no page context listening (or there is no tab)."""

    pass


class RuleQueryError(StudyModeError):
    """A selector could not be evaluated against the document."""

    def __init__(self, selector: str, reason: str) -> None:
        super().__init__(f"{selector}: {reason}")
        self.selector = selector
        self.reason = reason
