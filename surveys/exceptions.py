class SurveyError(Exception):
    """Base class for survey states that stop an operation without being a failure."""


class AlreadySubmittedError(SurveyError):
    """The respondent already has a response on file for this survey."""


class SurveyClosedError(SurveyError):
    """The survey is inactive and accepts no new responses."""
