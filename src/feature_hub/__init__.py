"""Feature Service registry and render orchestration.

feature_hub composes independently developed consumers that share versioned
capabilities ("Feature Services"). Providers are registered in dependency
order, may expose several semver versions of their service at once, and are
bound to each consumer instance separately so that every consumer can be torn
down on its own.

Key Features:
    - Dependency-ordered registration with cycle detection
    - npm-style semver ranges with first-match version selection
    - Per-consumer bindings with isolated teardown
    - Render-until-stable orchestration for asynchronous server-side rendering

Basic Usage:
    >>> from feature_hub import FeatureServiceRegistry, ConsumerDefinition
    >>> from feature_hub.async_ssr_manager import async_ssr_manager_definition
    >>>
    >>> registry = FeatureServiceRegistry(configs={"s2:async-ssr-manager": {"timeout": 5}})
    >>> registry.register_feature_services([async_ssr_manager_definition], "acme:integrator")
    >>>
    >>> binding = registry.bind_feature_services(
    ...     ConsumerDefinition("acme:integrator", dependencies={"s2:async-ssr-manager": "^0.1"})
    ... )
    >>> async_ssr_manager = binding.feature_services["s2:async-ssr-manager"]
    >>> html = await async_ssr_manager.render_until_completed(render_app)

The package consists of several modules:
    - registry: Feature Service registration
    - binder: Binding of Feature Services to consumers
    - dependency_graph: Topological ordering of providers
    - versions: Semver coercion and range matching
    - async_ssr_manager: Render-until-stable orchestration
    - serialized_state_manager: Server-to-client state transfer
    - domain: Core domain models
    - errors: Framework-specific exceptions
"""

from feature_hub.binder import BindingState, ConsumerBinding
from feature_hub.domain import (
    ConsumerDefinition,
    FeatureServiceBinding,
    FeatureServiceEnvironment,
    ProviderDefinition,
    provides,
)
from feature_hub.errors import (
    BindingError,
    DependencyCycleError,
    DependencyError,
    FeatureHubError,
    InvalidConfigError,
    InvalidVersionError,
    RenderTimeoutError,
)
from feature_hub.registry import FeatureServiceRegistry

__all__ = [
    "BindingError",
    "BindingState",
    "ConsumerBinding",
    "ConsumerDefinition",
    "DependencyCycleError",
    "DependencyError",
    "FeatureHubError",
    "FeatureServiceBinding",
    "FeatureServiceEnvironment",
    "FeatureServiceRegistry",
    "InvalidConfigError",
    "InvalidVersionError",
    "ProviderDefinition",
    "RenderTimeoutError",
    "provides",
]
