__all__ = [
    "FeatureHubError",
    "DependencyError",
    "DependencyCycleError",
    "BindingError",
    "InvalidVersionError",
    "InvalidConfigError",
    "RenderTimeoutError",
]


class FeatureHubError(Exception):
    """Base class for all errors raised by feature_hub."""

    pass


class DependencyError(FeatureHubError):
    """Raised when a required Feature Service dependency cannot be satisfied."""

    pass


class DependencyCycleError(DependencyError):
    """Raised when providers registered together depend on each other cyclically."""

    def __init__(self, message: str, nodes: list[str]):
        super().__init__(message)
        self.nodes = nodes


class BindingError(FeatureHubError):
    """Raised when a consumer is bound twice, or its binding is unbound twice."""

    pass


class InvalidVersionError(FeatureHubError):
    """Raised when a provider exposes a version that is not semver-coercible."""

    pass


class InvalidConfigError(FeatureHubError):
    """Raised when a built-in Feature Service receives a config it cannot use."""

    pass


class RenderTimeoutError(FeatureHubError, TimeoutError):
    """Raised when rendering did not complete within the configured timeout."""

    pass
