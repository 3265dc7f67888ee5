"""
Exceptions raised while loading story content and save data.
"""


class StoryLoadError(Exception):
    """A story directory could not be read."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class SaveDataError(ValueError):
    """Save data does not have the expected shape."""

    def __init__(self, message: str, field=None):
        super().__init__(message)
        self.field = field
