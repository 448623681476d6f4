"""Transfer of consumer state from server-side to client-side rendering.

On the server every consumer registers a callable producing its serialized
state; the integrator collects all of them into one string and embeds it in
the rendered page. On the client the integrator hands that string back, and
each consumer looks up its own state by its consumer uid.
"""

import json
import logging
from typing import Callable, Optional

from feature_hub.domain import (
    FeatureServiceBinding,
    FeatureServiceEnvironment,
    ProviderDefinition,
    SharedFeatureService,
)

__all__ = [
    "ServerSideStateManager",
    "ClientSideStateManager",
    "SerializedStateManager",
    "serialized_state_manager_definition",
]

logger = logging.getLogger(__name__)


class ServerSideStateManager:
    def __init__(self):
        self._state_serializers: dict[str, Callable[[], str]] = {}

    def register(self, consumer_uid: str, serialize_state: Callable[[], str]) -> None:
        self._state_serializers[consumer_uid] = serialize_state

    def serialize_states(self) -> str:
        """Serialize the states of all registered consumers into one JSON object."""
        return json.dumps(
            {
                consumer_uid: serialize_state()
                for consumer_uid, serialize_state in self._state_serializers.items()
            }
        )


class ClientSideStateManager:
    def __init__(self):
        self._serialized_states: dict[str, str] = {}

    def set_serialized_states(self, serialized_states: str) -> None:
        """Store the states produced by :meth:`ServerSideStateManager.serialize_states`.

        Raises:
            ValueError: If the string is not a JSON object of strings.
        """
        states = json.loads(serialized_states)
        if not isinstance(states, dict) or not all(
            isinstance(state, str) for state in states.values()
        ):
            raise ValueError("Serialized states must be a JSON object of strings")
        self._serialized_states = states

    def get_serialized_state(self, consumer_uid: str) -> Optional[str]:
        return self._serialized_states.get(consumer_uid)


class SerializedStateManager:
    """The Feature Service instance bound to a single consumer."""

    def __init__(
        self,
        consumer_uid: str,
        server_side_state_manager: ServerSideStateManager,
        client_side_state_manager: ClientSideStateManager,
    ):
        self._consumer_uid = consumer_uid
        self._server_side_state_manager = server_side_state_manager
        self._client_side_state_manager = client_side_state_manager

    def register(self, serialize_state: Callable[[], str]) -> None:
        self._server_side_state_manager.register(self._consumer_uid, serialize_state)

    def serialize_states(self) -> str:
        return self._server_side_state_manager.serialize_states()

    def set_serialized_states(self, serialized_states: str) -> None:
        self._client_side_state_manager.set_serialized_states(serialized_states)

    def get_serialized_state(self) -> Optional[str]:
        return self._client_side_state_manager.get_serialized_state(self._consumer_uid)


def _create_serialized_state_manager(env: FeatureServiceEnvironment) -> SharedFeatureService:
    server_side_state_manager = ServerSideStateManager()
    client_side_state_manager = ClientSideStateManager()

    def bind_v0(consumer_uid: str) -> FeatureServiceBinding:
        logger.debug("Binding serialized state manager to %s", consumer_uid)
        return FeatureServiceBinding(
            SerializedStateManager(
                consumer_uid, server_side_state_manager, client_side_state_manager
            )
        )

    return {"0.1": bind_v0}


serialized_state_manager_definition = ProviderDefinition(
    "s2:serialized-state-manager", _create_serialized_state_manager
)
