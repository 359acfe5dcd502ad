"""Exception hierarchy shared by the dashboard core and its widgets."""


class FeedboardError(Exception):
    """Base class for all feedboard errors."""


class ConfigError(FeedboardError):
    """Invalid configuration. Isolates a single widget unless raised at startup."""


class RefreshError(FeedboardError):
    """A widget refresh failed; the widget keeps its last good payload."""


class PersistenceError(FeedboardError):
    """Companion state could not be written."""


class TerminalError(FeedboardError):
    """The terminal could not be driven. Always fatal to the session."""


class SkillError(FeedboardError):
    """A skill purchase was rejected. No state was changed."""


class UnknownSkill(SkillError):
    pass


class AlreadyOwned(SkillError):
    pass


class InsufficientPoints(SkillError):
    pass
