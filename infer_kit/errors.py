class ConfigurationError(ValueError):
    """
    Raised when a tokenizer or decoder cannot be built from the supplied resources
    (missing mandatory special tokens, malformed vocabulary source, ...).
    """


class ShapeMismatchError(ValueError):
    """
    Raised when a model output buffer does not match the layout it is decoded against.
    """
