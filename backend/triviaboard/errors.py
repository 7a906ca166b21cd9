"""The single error type raised by the game services.

Every failure carries a human readable message plus a coarse ``kind`` so the
HTTP layer can pick a status code without parsing messages.
"""

NOT_FOUND = 'not_found'
FORBIDDEN = 'forbidden'
CONFLICT = 'conflict'
INVALID = 'invalid'


class GameError(Exception):
    def __init__(self, message: str, kind: str = INVALID):
        super().__init__(message)
        self.message = message
        self.kind = kind

    def to_dict(self):
        return {'error': self.message}
