"""Influence grid errors. All raised synchronously; nothing is retried."""


class InfluenceError(Exception):
    pass


class UninitializedGrid(InfluenceError):
    """update/get_influence called before init."""


class UnknownCell(InfluenceError, KeyError):
    """Queried key was not registered at init."""

    def __init__(self, key) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"cell key {self.key} is not registered"


class InvalidParameters(InfluenceError, ValueError):
    pass
