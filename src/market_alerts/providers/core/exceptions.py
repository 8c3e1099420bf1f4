"""Provider-level failure raised to the aggregator boundary (never past it)."""


class ProviderError(Exception):
    """An upstream source failed as a whole: transport error, non-2xx, or malformed payload."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
