from feature_hub.domain import (
    FeatureServiceBinding,
    ProviderDefinition,
    create_uid,
    inferred_id,
    provides,
)


def test_uid_without_specifier_is_consumer_id():
    assert create_uid("acme:app") == "acme:app"


def test_uid_with_specifier():
    assert create_uid("acme:app", "main") == "acme:app:main"


def test_id_is_inferred_from_create_function_name():
    def create_history():
        pass

    def history_service():
        pass

    assert inferred_id(create_history) == "history"
    assert inferred_id(history_service) == "history_service"


def test_provides_builds_provider_definition():
    @provides("acme:history", dependencies={"acme:logger": "^1.0"})
    def create_history(env):
        return {"1.0": lambda consumer_uid: FeatureServiceBinding("history")}

    assert isinstance(create_history, ProviderDefinition)
    assert create_history.id == "acme:history"
    assert create_history.dependencies == {"acme:logger": "^1.0"}
    assert create_history.optional_dependencies == {}
    assert create_history.create(None)["1.0"]("uid").feature_service == "history"


def test_provides_infers_id():
    @provides(optional_dependencies={"acme:logger": "^1.0"})
    def create_history(env):
        return {}

    assert create_history.id == "history"
    assert create_history.optional_dependencies == {"acme:logger": "^1.0"}


def test_binding_unbind_is_optional():
    assert FeatureServiceBinding("service").unbind is None
