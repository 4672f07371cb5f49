"""Exceptions raised inside the service.

Initialization failures are kept on the model loader and shown as a banner.
Input errors become 4xx responses. Runtime failures are turned into
negative `VerificationResult`s by the verifiers.
"""


class ContentVerifierError(Exception):
    """Base class for all service errors."""


class BackendUnavailableError(ContentVerifierError):
    """No torch device could be initialised."""


class ModelLoadError(ContentVerifierError):
    """The classifier artefact could not be loaded or warmed up."""


class ModelNotReadyError(ContentVerifierError):
    """Inference was requested before a model was published."""


class ImageDecodeError(ContentVerifierError):
    """The uploaded bytes are not a decodable image."""


class InputRejectedError(ContentVerifierError):
    """User input failed a guard before any asynchronous work started."""
