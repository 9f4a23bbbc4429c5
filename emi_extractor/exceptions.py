"""Exceptions raised by the EMI extraction pipeline"""


class EMIExtractorError(Exception):
    """Base exception for the extractor"""

    pass


class MissingExtractionError(EMIExtractorError, FileNotFoundError):
    """An upstream artifact the current stage reads from does not exist"""

    def __init__(self, path: str, hint: str):
        self.path = path
        self.hint = hint
        super().__init__(f"{path} not found. Run: {hint} first")


class InvalidExtractionError(EMIExtractorError, ValueError):
    """An input document is not shaped the way the stage expects"""

    pass
