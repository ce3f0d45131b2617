"""Domain errors raised while building reports."""


class ReportError(Exception):
    """Base class for report generation failures."""


class AssignmentNotFoundError(ReportError):
    def __init__(self, message: str = "Assignment not found"):
        super().__init__(message)


class AssessmentTypeMismatchError(ReportError):
    """The assignment's assessment mode does not match the requested generator."""


class AssignmentNotCompletedError(ReportError):
    def __init__(self, message: str = "Assignment not completed"):
        super().__init__(message)
