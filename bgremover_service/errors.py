"""Failures raised by the background-removal client."""

from __future__ import annotations


class BackgroundRemovalError(RuntimeError):
    """Base class for failures detected by this service (not SDK/network ones)."""


class MissingCredentialError(BackgroundRemovalError):
    def __init__(self, message: str = "API_KEY environment variable is not set.") -> None:
        super().__init__(message)


class ServiceRefusalError(BackgroundRemovalError):
    """The model answered with text instead of an image."""

    def __init__(self, text: str) -> None:
        super().__init__(f"API returned a text response instead of an image: {text}")
        self.text = text


class NoImageReturnedError(BackgroundRemovalError):
    def __init__(
        self, message: str = "Failed to process the image. The API did not return an image."
    ) -> None:
        super().__init__(message)
