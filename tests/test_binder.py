import logging

import pytest

from feature_hub.binder import BindingState, ConsumerBinder
from feature_hub.domain import ConsumerDefinition, FeatureServiceBinding
from feature_hub.errors import BindingError, DependencyError


class Counter:
    def __init__(self, consumer_uid):
        self.consumer_uid = consumer_uid


@pytest.fixture
def teardowns():
    return []


@pytest.fixture
def shared_feature_services(teardowns):
    def bind_counter_v1(consumer_uid):
        return FeatureServiceBinding(
            Counter(consumer_uid), lambda: teardowns.append(("counter", consumer_uid))
        )

    def bind_counter_v2(consumer_uid):
        return FeatureServiceBinding(("v2", consumer_uid))

    def bind_logger(consumer_uid):
        return FeatureServiceBinding(
            "logger", lambda: teardowns.append(("logger", consumer_uid))
        )

    return {
        "acme:counter": {"1.1": bind_counter_v1, "2.0": bind_counter_v2},
        "acme:logger": {"1.0.0": bind_logger},
    }


@pytest.fixture
def binder(shared_feature_services):
    return ConsumerBinder(shared_feature_services)


def test_binds_required_and_optional_dependencies(binder):
    binding = binder.bind(
        ConsumerDefinition(
            "acme:app",
            dependencies={"acme:counter": "^1.0"},
            optional_dependencies={"acme:logger": "^1.0"},
        )
    )

    assert binding.consumer_uid == "acme:app"
    assert binding.feature_services["acme:counter"].consumer_uid == "acme:app"
    assert binding.feature_services["acme:logger"] == "logger"
    assert binding.state is BindingState.BOUND
    assert binder.consumer_uids == {"acme:app"}


def test_binds_first_declared_compatible_version(binder):
    binding = binder.bind(
        ConsumerDefinition("acme:app", dependencies={"acme:counter": "^1.0 || ^2.0"})
    )

    assert isinstance(binding.feature_services["acme:counter"], Counter)


def test_specifier_distinguishes_consumer_instances(binder):
    definition = ConsumerDefinition("acme:app", dependencies={"acme:counter": "^2.0"})

    first = binder.bind(definition, "first")
    second = binder.bind(definition, "second")

    assert first.feature_services["acme:counter"] == ("v2", "acme:app:first")
    assert second.feature_services["acme:counter"] == ("v2", "acme:app:second")


def test_required_dependency_wins_over_optional_declaration(binder):
    definition = ConsumerDefinition(
        "acme:app",
        dependencies={"acme:counter": "^3.0"},
        optional_dependencies={"acme:counter": "^1.0"},
    )

    with pytest.raises(DependencyError, match="required Feature Service 'acme:counter'"):
        binder.bind(definition)


def test_binding_same_consumer_twice_raises(binder):
    definition = ConsumerDefinition("acme:app", dependencies={"acme:counter": "^1.0"})
    binder.bind(definition, "a")

    with pytest.raises(BindingError, match="already bound to 'acme:app:a'"):
        binder.bind(definition, "a")


def test_consumer_can_be_bound_again_after_unbind(binder):
    definition = ConsumerDefinition("acme:app", dependencies={"acme:counter": "^1.0"})
    binder.bind(definition).unbind()

    rebound = binder.bind(definition)

    assert rebound.state is BindingState.BOUND


def test_missing_range_for_required_dependency_raises(binder):
    with pytest.raises(DependencyError, match="has no version range declared"):
        binder.bind(ConsumerDefinition("acme:app", dependencies={"acme:counter": None}))


def test_unregistered_required_dependency_raises(binder):
    with pytest.raises(
        DependencyError,
        match="'acme:unknown' is not registered .* consumer 'acme:app'",
    ):
        binder.bind(ConsumerDefinition("acme:app", dependencies={"acme:unknown": "^1.0"}))


def test_unsupported_required_version_lists_supported_versions(binder):
    with pytest.raises(DependencyError, match=r"\['1.1', '2.0'\]"):
        binder.bind(ConsumerDefinition("acme:app", dependencies={"acme:counter": "^3.0"}))


def test_failed_bind_does_not_register_consumer_uid(binder):
    with pytest.raises(DependencyError):
        binder.bind(ConsumerDefinition("acme:app", dependencies={"acme:unknown": "1"}))

    assert binder.consumer_uids == frozenset()


def test_unsatisfiable_optional_dependencies_are_skipped(binder, caplog):
    caplog.set_level(logging.INFO, logger="feature_hub.binder")

    binding = binder.bind(
        ConsumerDefinition(
            "acme:app",
            optional_dependencies={
                "acme:unknown": "^1.0",
                "acme:counter": "^3.0",
                "acme:logger": None,
            },
        )
    )

    assert binding.feature_services == {}
    assert any("'acme:unknown' is not registered" in r.message for r in caplog.records)
    assert any("unsupported version '^3.0'" in r.message for r in caplog.records)
    assert any("no version range declared" in r.message for r in caplog.records)


def test_unbind_tears_down_bindings_in_order(binder, teardowns):
    binding = binder.bind(
        ConsumerDefinition(
            "acme:app",
            dependencies={"acme:counter": "^1.0", "acme:logger": "^1.0"},
        )
    )

    binding.unbind()

    assert teardowns == [("counter", "acme:app"), ("logger", "acme:app")]
    assert binding.state is BindingState.UNBOUND
    assert binder.consumer_uids == frozenset()


def test_unbinding_twice_raises(binder):
    binding = binder.bind(ConsumerDefinition("acme:app"))
    binding.unbind()

    with pytest.raises(BindingError, match="already unbound from 'acme:app'"):
        binding.unbind()


def test_failing_teardown_does_not_stop_other_teardowns(caplog):
    torn_down = []

    def failing_unbind():
        raise RuntimeError("boom")

    binder = ConsumerBinder(
        {
            "acme:flaky": {"1.0": lambda uid: FeatureServiceBinding("flaky", failing_unbind)},
            "acme:stable": {
                "1.0": lambda uid: FeatureServiceBinding(
                    "stable", lambda: torn_down.append(uid)
                )
            },
        }
    )
    binding = binder.bind(
        ConsumerDefinition(
            "acme:app", dependencies={"acme:flaky": "1", "acme:stable": "1"}
        )
    )

    binding.unbind()

    assert torn_down == ["acme:app"]
    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "'acme:flaky' could not be unbound" in errors[0].message
    assert errors[0].exc_info[0] is RuntimeError
