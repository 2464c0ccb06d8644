class InsightsError(Exception):
    """Base class for insight pipeline errors"""
    pass


class PublishError(InsightsError):
    """Raised by a publisher when a post could not be delivered"""
    pass


class TextGenerationError(InsightsError):
    """Raised when the text generation provider fails or returns nothing usable"""
    pass
