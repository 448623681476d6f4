"""Render-until-stable orchestration for server-side rendering.

A render function is invoked repeatedly until a pass completes without any
participant asking for a rerender. Participants ask for one by handing an
awaitable to :meth:`AsyncSsrManager.rerender_after` while a pass is running;
the next pass starts once every awaitable of the current pass has completed.
A single timeout bounds the whole operation, not individual passes.

The manager is shared: every consumer binding ``s2:async-ssr-manager`` gets
the same instance, so the integrator calling :meth:`render_until_completed`
and the consumers calling :meth:`rerender_after` meet in one place.
"""

import asyncio
import logging
from collections.abc import Mapping
from contextvars import ContextVar
from dataclasses import dataclass, field
from enum import Enum
from numbers import Real
from typing import Any, Awaitable, Callable, Optional

from feature_hub.domain import (
    FeatureServiceBinding,
    FeatureServiceEnvironment,
    ProviderDefinition,
    SharedFeatureService,
)
from feature_hub.errors import InvalidConfigError, RenderTimeoutError

__all__ = [
    "RenderState",
    "RenderSession",
    "AsyncSsrManager",
    "async_ssr_manager_definition",
]

logger = logging.getLogger(__name__)

_NO_TIMEOUT_WARNING = (
    "No timeout is configured for the Async SSR Manager. This could lead to "
    "unexpectedly long render times or, in the worst case, never resolving "
    "render calls!"
)


class RenderState(Enum):
    IDLE = "idle"
    RENDERING = "rendering"
    SETTLING = "settling"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RenderSession:
    """State of one :meth:`AsyncSsrManager.render_until_completed` call.

    Attributes:
        render_pass: Number of render passes started so far.
        pending: Awaitables contributed during the current pass.
        state: Where the session is in its render loop.
    """

    render_pass: int = 0
    pending: list[asyncio.Future] = field(default_factory=list)
    state: RenderState = RenderState.IDLE

    def transition(self, state: RenderState) -> None:
        logger.debug(
            "Render session moved from %s to %s in pass %d",
            self.state.value,
            state.value,
            self.render_pass,
        )
        self.state = state


class AsyncSsrManager:
    """Drives a render function until its output is stable.

    Args:
        timeout: Seconds the whole render operation may take. None or 0
            means unbounded, which is allowed but logged as a warning once.
    """

    def __init__(self, timeout: Optional[float] = None):
        self._timeout = timeout
        self._warned_about_timeout = False
        self._session: ContextVar[Optional[RenderSession]] = ContextVar(
            "render_session", default=None
        )

    @property
    def timeout(self) -> Optional[float]:
        return self._timeout

    def rerender_after(self, awaitable: Awaitable[Any]) -> None:
        """Ask for another render pass once the awaitable has completed.

        Only meaningful while a render pass is running; outside of one the
        request is ignored with a warning.
        """
        session = self._session.get()
        if session is None or session.state is not RenderState.RENDERING:
            logger.warning("rerender_after was called outside of a render pass and is ignored.")
            return

        session.pending.append(asyncio.ensure_future(awaitable))

    async def render_until_completed(self, render: Callable[[], str]) -> str:
        """Render until no participant asks for a rerender.

        Args:
            render: Invoked once per pass; its output of the last pass is the
                result.

        Returns:
            The output of the first pass in which no rerender was requested.

        Raises:
            RenderTimeoutError: If the configured timeout elapsed first.
            Exception: Whatever ``render`` or a rerender awaitable raised.
        """
        if not self._timeout:
            if not self._warned_about_timeout:
                self._warned_about_timeout = True
                logger.warning(_NO_TIMEOUT_WARNING)
            return await self._render_until_stable(render)

        render_task = asyncio.ensure_future(self._render_until_stable(render))
        try:
            done, _ = await asyncio.wait({render_task}, timeout=self._timeout)
        except asyncio.CancelledError:
            render_task.cancel()
            raise

        if render_task not in done:
            render_task.cancel()
            raise RenderTimeoutError(f"Got rendering timeout after {self._timeout} seconds.")

        return render_task.result()

    async def _render_until_stable(self, render: Callable[[], str]) -> str:
        session = RenderSession()
        token = self._session.set(session)

        try:
            while True:
                session.render_pass += 1
                session.transition(RenderState.RENDERING)
                output = render()

                if not session.pending:
                    session.transition(RenderState.DONE)
                    logger.debug("Rendering completed after %d passes", session.render_pass)
                    return output

                pending, session.pending = session.pending, []
                session.transition(RenderState.SETTLING)
                # in-flight awaitables are abandoned, not cancelled, on timeout
                await asyncio.shield(asyncio.gather(*pending))
        except BaseException:
            session.transition(RenderState.FAILED)
            raise
        finally:
            self._session.reset(token)


def _validate_config(config: Any) -> Optional[float]:
    if config is None:
        return None
    if not isinstance(config, Mapping):
        raise InvalidConfigError("The Async SSR Manager config is invalid.")

    timeout = config.get("timeout")
    if timeout is None:
        return None
    if isinstance(timeout, bool) or not isinstance(timeout, Real) or timeout <= 0:
        raise InvalidConfigError("The Async SSR Manager config is invalid.")
    return float(timeout)


def _create_async_ssr_manager(env: FeatureServiceEnvironment) -> SharedFeatureService:
    async_ssr_manager = AsyncSsrManager(_validate_config(env.config))

    def bind_v0(consumer_uid: str) -> FeatureServiceBinding:
        return FeatureServiceBinding(async_ssr_manager)

    return {"0.1": bind_v0}


async_ssr_manager_definition = ProviderDefinition(
    "s2:async-ssr-manager", _create_async_ssr_manager
)
