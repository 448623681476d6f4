"""Binding of registered Feature Services to consumers.

A consumer declares the Feature Services it needs, each with a semver range.
For every declared dependency the binder picks the first version exposed by
the provider that satisfies the range, calls that version's binder with the
consumer's uid, and hands the resulting instance to the consumer. Unbinding
tears the bindings down again, one by one, without letting a failing teardown
stop the others.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Union

from feature_hub import messages
from feature_hub.domain import (
    ConsumerDefinition,
    FeatureServiceBinding,
    FeatureServices,
    ProviderDefinition,
    SharedFeatureService,
    create_uid,
)
from feature_hub.errors import BindingError, DependencyError
from feature_hub.versions import find_matching_version

__all__ = ["BindingState", "ConsumerBinding", "ConsumerBinder"]

logger = logging.getLogger(__name__)


class BindingState(Enum):
    BOUND = "bound"
    UNBOUND = "unbound"


@dataclass(frozen=True)
class _BindingRecord:
    provider_id: str
    binding: FeatureServiceBinding


class ConsumerBinding:
    """The Feature Services bound to one consumer instance.

    Attributes:
        consumer_uid: The uid the Feature Services were bound to.
        feature_services: Bound Feature Service instances keyed by provider id.
            Optional dependencies that could not be bound are absent.
        state: :attr:`BindingState.BOUND` until :meth:`unbind` is called.
    """

    def __init__(
        self,
        consumer_uid: str,
        feature_services: FeatureServices,
        records: list[_BindingRecord],
        consumer_uids: set[str],
    ):
        self.consumer_uid = consumer_uid
        self.feature_services = feature_services
        self.state = BindingState.BOUND
        self._records = records
        self._consumer_uids = consumer_uids

    def unbind(self) -> None:
        """Release the consumer uid and tear down every binding.

        Bindings are torn down in the order they were made. A teardown that
        raises is logged and the remaining teardowns still run.

        Raises:
            BindingError: If this binding has already been unbound.
        """
        if self.state is BindingState.UNBOUND:
            raise BindingError(messages.feature_services_already_unbound(self.consumer_uid))

        self.state = BindingState.UNBOUND
        self._consumer_uids.discard(self.consumer_uid)

        for record in self._records:
            try:
                if record.binding.unbind:
                    record.binding.unbind()

                logger.info(
                    messages.feature_service_successfully_unbound(
                        record.provider_id, self.consumer_uid
                    )
                )
            except Exception:
                logger.exception(
                    messages.feature_service_could_not_be_unbound(
                        record.provider_id, self.consumer_uid
                    )
                )


class ConsumerBinder:
    """Binds consumers against a live mapping of shared Feature Services.

    The binder only reads ``shared_feature_services``; the registry owning the
    mapping keeps adding to it as providers are registered.
    """

    def __init__(self, shared_feature_services: Mapping[str, SharedFeatureService]):
        self._shared_feature_services = shared_feature_services
        self._consumer_uids: set[str] = set()

    @property
    def consumer_uids(self) -> frozenset[str]:
        return frozenset(self._consumer_uids)

    def bind(
        self,
        consumer_definition: Union[ConsumerDefinition, ProviderDefinition],
        consumer_id_specifier: Optional[str] = None,
    ) -> ConsumerBinding:
        """Bind all dependencies of a consumer.

        Args:
            consumer_definition: Declares the consumer id and its required and
                optional dependencies.
            consumer_id_specifier: Distinguishes this consumer instance from
                others with the same definition.

        Returns:
            A :class:`ConsumerBinding` with the bound Feature Services.

        Raises:
            BindingError: If the consumer uid is already bound.
            DependencyError: If a required dependency cannot be satisfied.
        """
        consumer_uid = create_uid(consumer_definition.id, consumer_id_specifier)

        if consumer_uid in self._consumer_uids:
            raise BindingError(messages.feature_services_already_bound(consumer_uid))

        dependencies = consumer_definition.dependencies or {}
        all_dependencies = {
            **(consumer_definition.optional_dependencies or {}),
            **dependencies,
        }

        records: list[_BindingRecord] = []
        feature_services: FeatureServices = {}

        for provider_id, required_version in all_dependencies.items():
            binding = self._bind_feature_service(
                provider_id,
                consumer_uid,
                required_version,
                optional=provider_id not in dependencies,
            )
            if binding is None:
                continue

            logger.info(messages.feature_service_successfully_bound(provider_id, consumer_uid))

            records.append(_BindingRecord(provider_id, binding))
            feature_services[provider_id] = binding.feature_service

        self._consumer_uids.add(consumer_uid)

        return ConsumerBinding(consumer_uid, feature_services, records, self._consumer_uids)

    def _bind_feature_service(
        self,
        provider_id: str,
        consumer_uid: str,
        required_version: Optional[str],
        optional: bool,
    ) -> Optional[FeatureServiceBinding]:
        if not required_version:
            return _skip_or_raise(
                optional,
                messages.feature_service_dependency_version_invalid(
                    optional, provider_id, consumer_uid
                ),
            )

        shared_feature_service = self._shared_feature_services.get(provider_id)
        if shared_feature_service is None:
            return _skip_or_raise(
                optional,
                messages.feature_service_not_registered(optional, provider_id, consumer_uid),
            )

        supported_versions = list(shared_feature_service.keys())
        version = find_matching_version(required_version, supported_versions)
        if version is None:
            return _skip_or_raise(
                optional,
                messages.feature_service_unsupported(
                    optional, provider_id, consumer_uid, required_version, supported_versions
                ),
            )

        return shared_feature_service[version](consumer_uid)


def _skip_or_raise(optional: bool, message: str) -> None:
    if not optional:
        raise DependencyError(message)
    logger.info(message)
