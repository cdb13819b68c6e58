"""Exceptions raised by the score compiler in strict mode."""


class ScoreSyntaxError(ValueError):
    """
    Malformed score text.

    Attributes:
        position: Index into the score text where the problem was found.
    """

    def __init__(self, message: str, position: int) -> None:
        super().__init__(f"{message} (at position {position})")
        self.message = message
        self.position = position
