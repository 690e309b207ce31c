"""
Exception hierarchy for the retrieval core.

- ConfigurationError: a required collaborator (embedding service) is missing
- InvalidQueryError: bad caller input, fails fast with no partial result
- EmbeddingError: the embedding service failed or returned unusable vectors
- VectorDecodeError: a stored vector blob does not match the expected layout
"""


class PaperHunterError(Exception):
    """Base class for all retrieval errors"""


class ConfigurationError(PaperHunterError):
    """Feature requested without the collaborator it needs"""


class InvalidQueryError(PaperHunterError, ValueError):
    """Empty query, empty document set or other invalid caller input"""


class UnknownAlgorithmError(InvalidQueryError):
    """Ranking algorithm name not registered"""

    def __init__(self, algorithm: str, available=()):
        self.algorithm = algorithm
        self.available = list(available)
        message = f"Unknown ranking algorithm: {algorithm}"
        if self.available:
            message += f". Valid options: {', '.join(self.available)}"
        super().__init__(message)


class EmptyIndexError(InvalidQueryError):
    """Lexical search against an index with no documents"""


class EmbeddingError(PaperHunterError):
    """Embedding service call failed"""


class VectorDecodeError(PaperHunterError, ValueError):
    """Vector blob has a wrong byte length or dimension"""
