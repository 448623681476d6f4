"""Text of the notices emitted by the registry and the consumer binder.

Exceptions and log records share these builders so that a failure reads the
same whether it was raised or merely logged.
"""


def _dependency_kind(optional: bool) -> str:
    return "optional" if optional else "required"


def dependency_cycle(nodes: list[str]) -> str:
    return f"Dependency cycle detected among Feature Services: {nodes}"


def feature_service_already_registered(provider_id: str, consumer_id: str) -> str:
    return (
        f"The already registered Feature Service {provider_id!r} could not be "
        f"re-registered by consumer {consumer_id!r}."
    )


def feature_service_successfully_registered(provider_id: str, consumer_id: str) -> str:
    return (
        f"The Feature Service {provider_id!r} has been successfully registered "
        f"by consumer {consumer_id!r}."
    )


def feature_service_version_invalid(
    provider_id: str, consumer_id: str, version: str
) -> str:
    return (
        f"The Feature Service {provider_id!r} registered by consumer "
        f"{consumer_id!r} exposes the invalid version {version!r}."
    )


def feature_services_already_bound(consumer_uid: str) -> str:
    return f"All required Feature Services are already bound to {consumer_uid!r}."


def feature_services_already_unbound(consumer_uid: str) -> str:
    return f"All required Feature Services are already unbound from {consumer_uid!r}."


def feature_service_successfully_bound(provider_id: str, consumer_uid: str) -> str:
    return (
        f"The Feature Service {provider_id!r} has been successfully bound to "
        f"consumer {consumer_uid!r}."
    )


def feature_service_successfully_unbound(provider_id: str, consumer_uid: str) -> str:
    return (
        f"The Feature Service {provider_id!r} has been successfully unbound from "
        f"consumer {consumer_uid!r}."
    )


def feature_service_could_not_be_unbound(provider_id: str, consumer_uid: str) -> str:
    return (
        f"The Feature Service {provider_id!r} could not be unbound from "
        f"consumer {consumer_uid!r}."
    )


def feature_service_dependency_version_invalid(
    optional: bool, provider_id: str, consumer_uid: str
) -> str:
    return (
        f"The {_dependency_kind(optional)} Feature Service {provider_id!r} "
        f"requested by consumer {consumer_uid!r} has no version range declared."
    )


def feature_service_not_registered(
    optional: bool, provider_id: str, consumer_uid: str
) -> str:
    return (
        f"The {_dependency_kind(optional)} Feature Service {provider_id!r} is not "
        f"registered and therefore could not be bound to consumer {consumer_uid!r}."
    )


def feature_service_unsupported(
    optional: bool,
    provider_id: str,
    consumer_uid: str,
    required_version: str,
    supported_versions: list[str],
) -> str:
    return (
        f"The {_dependency_kind(optional)} Feature Service {provider_id!r} in the "
        f"unsupported version {required_version!r} could not be bound to consumer "
        f"{consumer_uid!r}. The supported versions are {supported_versions}."
    )
