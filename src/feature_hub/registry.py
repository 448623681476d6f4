"""The Feature Service registry.

Providers are registered in batches. Within a batch they are created in
dependency order, each one being bound as a consumer of the Feature Services
registered before it. Once registered, a Feature Service stays registered for
the lifetime of the registry and can be bound by any number of consumers.
"""

import logging
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Union

from feature_hub import messages
from feature_hub.binder import ConsumerBinder, ConsumerBinding
from feature_hub.dependency_graph import toposort_dependencies
from feature_hub.domain import (
    ConsumerDefinition,
    FeatureServiceEnvironment,
    ProviderDefinition,
    SharedFeatureService,
)
from feature_hub.errors import InvalidVersionError
from feature_hub.versions import coerce

__all__ = ["FeatureServiceRegistry"]

logger = logging.getLogger(__name__)


class FeatureServiceRegistry:
    """Registry providing Feature Services to dependent consumers.

    The integrator creates one registry and passes it to everything that
    registers or binds Feature Services.

    Example:
        >>> registry = FeatureServiceRegistry(configs={"acme:counter": {"start": 1}})
        >>> registry.register_feature_services([counter_definition], "acme:integrator")
        >>> binding = registry.bind_feature_services(
        ...     ConsumerDefinition("acme:app", dependencies={"acme:counter": "^1.0"})
        ... )
        >>> counter = binding.feature_services["acme:counter"]
    """

    def __init__(self, configs: Optional[Mapping[str, Any]] = None):
        """
        Args:
            configs: Configs for all Feature Services that will potentially be
                registered, keyed by provider id.
        """
        self._configs = configs or {}
        self._shared_feature_services: dict[str, SharedFeatureService] = {}
        self._binder = ConsumerBinder(self._shared_feature_services)

    def register_feature_services(
        self, provider_definitions: Iterable[ProviderDefinition], consumer_id: str
    ) -> None:
        """Register a batch of Feature Services.

        The definitions need not be sorted. A provider and its dependencies
        must either be registered together, or the dependencies must already be
        registered. Providers whose id is already registered are skipped with
        a warning.

        Registration is not atomic: if a provider fails, the providers created
        before it in the same batch stay registered.

        Args:
            provider_definitions: The Feature Services to register.
            consumer_id: The id of the consumer registering them.

        Raises:
            DependencyCycleError: If providers in the batch depend on each
                other cyclically.
            DependencyError: If a required dependency of a provider cannot be
                bound.
            InvalidVersionError: If a provider exposes a version that is not
                semver-coercible.
        """
        definitions_by_id = {definition.id: definition for definition in provider_definitions}

        dependency_graph = {
            provider_id: {
                **(definition.dependencies or {}),
                **(definition.optional_dependencies or {}),
            }.keys()
            for provider_id, definition in definitions_by_id.items()
        }

        for provider_id in toposort_dependencies(dependency_graph):
            if provider_id in self._shared_feature_services:
                logger.warning(
                    messages.feature_service_already_registered(provider_id, consumer_id)
                )
                continue

            self._register_feature_service(definitions_by_id[provider_id], consumer_id)

    def bind_feature_services(
        self,
        consumer_definition: Union[ConsumerDefinition, ProviderDefinition],
        consumer_id_specifier: Optional[str] = None,
    ) -> ConsumerBinding:
        """Bind all dependencies of a consumer.

        Args:
            consumer_definition: The consumer to which dependencies are bound.
            consumer_id_specifier: Distinguishes the consumer from others with
                the same definition.

        Raises:
            BindingError: If called with the same definition and specifier
                again before the previous binding was unbound.
            DependencyError: If a required dependency cannot be satisfied.
        """
        return self._binder.bind(consumer_definition, consumer_id_specifier)

    def registered_feature_services(self) -> Mapping[str, SharedFeatureService]:
        """Read-only view of the registered Feature Services, keyed by provider id."""
        return MappingProxyType(self._shared_feature_services)

    def bound_consumer_uids(self) -> frozenset[str]:
        return self._binder.consumer_uids

    def _register_feature_service(
        self, provider_definition: ProviderDefinition, consumer_id: str
    ) -> None:
        provider_id = provider_definition.id
        binding = self._binder.bind(provider_definition)

        shared_feature_service = provider_definition.create(
            FeatureServiceEnvironment(self._configs.get(provider_id), binding.feature_services)
        )

        for version in shared_feature_service:
            if coerce(version) is None:
                raise InvalidVersionError(
                    messages.feature_service_version_invalid(provider_id, consumer_id, version)
                )

        self._shared_feature_services[provider_id] = shared_feature_service

        logger.info(messages.feature_service_successfully_registered(provider_id, consumer_id))
