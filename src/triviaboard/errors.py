"""
Exceptions raised by the board-acquisition pipeline and the reveal machine
"""


class TriviaBoardError(Exception):
    """Base class for trivia board errors"""


class SourceError(TriviaBoardError):
    """The trivia source answered, but not with usable data"""


class SourceUnavailableError(SourceError):
    """The trivia source cannot be reached at all"""


class BoardUnavailable(TriviaBoardError):
    """Every assembly attempt came up short"""
    
    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.message = message
        self.attempts = attempts


class StaleAssemblyError(TriviaBoardError):
    """A newer game was started while this assembly was still running"""


class InvalidInteractionError(IndexError, TriviaBoardError):
    """Reveal requested for a cell that does not exist"""


class NoActiveBoardError(TriviaBoardError):
    """Reveal requested while no board is on display"""
