"""Domain models shared by the registry, the binder and the built-in Feature Services."""

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

__all__ = [
    "ConsumerDependencies",
    "FeatureServices",
    "ConsumerDefinition",
    "ProviderDefinition",
    "FeatureServiceEnvironment",
    "FeatureServiceBinding",
    "FeatureServiceBinder",
    "SharedFeatureService",
    "create_uid",
    "inferred_id",
    "provides",
]


ConsumerDependencies = Mapping[str, Optional[str]]
"""Feature Service ids mapped to the semver range a consumer requires of them."""

FeatureServices = dict[str, Any]
"""Bound Feature Service instances keyed by provider id.

Values are untyped; a consumer narrows each one to the interface it expects.
"""


@dataclass(frozen=True)
class ConsumerDefinition:
    """Declares what a consumer needs from the registry.

    Attributes:
        id: The consumer id. Combined with an optional specifier it forms the
            consumer uid that identifies a bound consumer instance.
        dependencies: Required Feature Services, keyed by provider id, with the
            semver range the consumer is compatible with.
        optional_dependencies: Feature Services the consumer can do without.
    """

    id: str
    dependencies: ConsumerDependencies = field(default_factory=dict)
    optional_dependencies: ConsumerDependencies = field(default_factory=dict)


@dataclass(frozen=True)
class FeatureServiceEnvironment:
    """Passed to :attr:`ProviderDefinition.create`.

    Attributes:
        config: The integrator-supplied config for the provider, or None.
        feature_services: The provider's own dependencies, already bound.
    """

    config: Any
    feature_services: FeatureServices


@dataclass(frozen=True)
class FeatureServiceBinding:
    """A Feature Service instance bound to a single consumer.

    Attributes:
        feature_service: The object handed to the consumer.
        unbind: Optional cleanup invoked when the consumer is unbound.
    """

    feature_service: Any
    unbind: Optional[Callable[[], None]] = None


FeatureServiceBinder = Callable[[str], FeatureServiceBinding]
"""Creates a binding for the consumer uid it is called with."""

SharedFeatureService = dict[str, FeatureServiceBinder]
"""Version strings mapped to binders.

Key order is significant: when several versions satisfy a requested range, the
one declared first is bound.
"""


@dataclass(frozen=True)
class ProviderDefinition:
    """Declares a Feature Service provider.

    A provider is also a consumer: its dependencies are bound, using the
    provider id as consumer id, before ``create`` is invoked.

    Attributes:
        id: The provider id under which the Feature Service is registered.
        create: Factory returning the :data:`SharedFeatureService`.
        dependencies: Required Feature Services of the provider.
        optional_dependencies: Optional Feature Services of the provider.
    """

    id: str
    create: Callable[[FeatureServiceEnvironment], SharedFeatureService]
    dependencies: ConsumerDependencies = field(default_factory=dict)
    optional_dependencies: ConsumerDependencies = field(default_factory=dict)


def create_uid(consumer_id: str, consumer_id_specifier: Optional[str] = None) -> str:
    """Derive the uid of a consumer instance.

    Example:
        >>> create_uid("acme:history-consumer")
        'acme:history-consumer'
        >>> create_uid("acme:history-consumer", "a")
        'acme:history-consumer:a'
    """
    if consumer_id_specifier:
        return f"{consumer_id}:{consumer_id_specifier}"
    return consumer_id


def inferred_id(create: Callable) -> str:
    """Derive a provider id from a create function, removing any 'create_' prefix."""
    if create.__name__.startswith("create_"):
        return create.__name__[7:]
    return create.__name__


def provides(
    id: Optional[str] = None,
    dependencies: Optional[ConsumerDependencies] = None,
    optional_dependencies: Optional[ConsumerDependencies] = None,
) -> Callable[[Callable], ProviderDefinition]:
    """Decorator turning a create function into a :class:`ProviderDefinition`.

    Args:
        id: Optional provider id; defaults to the function name with any
            'create_' prefix removed.
        dependencies: Required Feature Services of the provider.
        optional_dependencies: Optional Feature Services of the provider.

    Example:
        @provides("acme:counter", dependencies={"acme:logger": "^1.0"})
        def create_counter(env: FeatureServiceEnvironment) -> SharedFeatureService:
            return {"1.0.0": lambda consumer_uid: FeatureServiceBinding(Counter())}
    """

    def decorator(create: Callable) -> ProviderDefinition:
        return ProviderDefinition(
            id or inferred_id(create),
            create,
            dict(dependencies or {}),
            dict(optional_dependencies or {}),
        )

    return decorator
