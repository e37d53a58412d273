"""Split a radio so that its PHY side can run in a separate task.

``create_proxy_radio`` returns a ``ProxyRadio``, which implements ``Radio`` and
is used by the stack, and a ``PhyRadioRunner``, which drives the real PHY radio
(wrapped in ``MacRadio``) in a task of its own. Running the PHY side apart
matters when ACKs and address filtering are done in software, because of
their timing constraints.

A new request from the proxy cancels whatever the runner is still doing
for an abandoned one.
"""

from __future__ import annotations

import asyncio
import functools
import operator
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import NoReturn, TypeVar

from .mac_radio import MacRadio, MacRadioTimer
from .radio import (
    Capabilities,
    Config,
    MacCapabilities,
    PsduMeta,
    Radio,
    RadioError,
    RadioErrorKind,
)
from .signal import Signal

#: The largest PSDU a request may carry, in bytes.
PSDU_MAX_LEN = 127

_ALL_MAC_CAPS = functools.reduce(operator.or_, MacCapabilities)

T = TypeVar("T")


@dataclass(frozen=True)
class _Request:
    tx: bool
    config: Config
    psdu: bytes = b""


@dataclass(frozen=True)
class _Response:
    error: RadioErrorKind | None = None
    psdu: bytes = b""
    channel: int = 0
    rssi: int | None = None


class _Interrupted(Exception):
    """Processing of a request was cut short by a newer request."""


@dataclass
class _Pipe:
    requests: asyncio.Queue = field(default_factory=lambda: asyncio.Queue(maxsize=1))
    responses: asyncio.Queue = field(default_factory=lambda: asyncio.Queue(maxsize=1))
    cancel: Signal[None] = field(default_factory=Signal)


class ProxyRadio(Radio):
    """The stack's side of the pipe: forwards each TX/RX to the runner."""

    def __init__(self, caps: Capabilities, pipe: _Pipe) -> None:
        self._caps = caps
        self._pipe = pipe
        self._config = Config()
        self._cancelled = False

    def caps(self) -> Capabilities:
        return self._caps

    def mac_caps(self) -> MacCapabilities:
        # The runner wraps the PHY radio in MacRadio, which handles the rest.
        return _ALL_MAC_CAPS

    async def set_config(self, config: Config) -> None:
        # Sent along with the next request.
        self._config = config

    async def _drain_cancelled(self) -> None:
        if self._cancelled:
            await self._pipe.responses.get()
            self._cancelled = False

    async def _exchange(self, request: _Request) -> _Response:
        await self._drain_cancelled()
        await self._pipe.requests.put(request)
        self._cancelled = True
        try:
            response = await self._pipe.responses.get()
        except BaseException:
            self._pipe.cancel.signal(None)
            raise
        self._cancelled = False
        return response

    async def transmit(
        self, psdu: bytes, want_ack: bool
    ) -> tuple[bytes, PsduMeta] | None:
        psdu = bytes(psdu)
        if len(psdu) > PSDU_MAX_LEN:
            raise ValueError(f"PSDU longer than {PSDU_MAX_LEN} bytes: {len(psdu)}")

        response = await self._exchange(_Request(True, self._config, psdu))
        if response.error is not None:
            raise RadioError(response.error)
        if want_ack and response.psdu:
            meta = PsduMeta(len(response.psdu), response.channel, response.rssi)
            return response.psdu, meta
        return None

    async def receive(self) -> tuple[bytes, PsduMeta]:
        response = await self._exchange(_Request(False, self._config))
        if response.error is not None:
            raise RadioError(response.error)
        meta = PsduMeta(len(response.psdu), response.channel, response.rssi)
        return response.psdu, meta


class PhyRadioRunner:
    """The PHY side of the pipe: executes the proxy's requests on a radio."""

    def __init__(self, pipe: _Pipe) -> None:
        self._pipe = pipe

    async def run(self, radio: Radio, timer: MacRadioTimer) -> NoReturn:
        """Serve requests forever on ``radio``, timing software ACKs with ``timer``."""
        mac_radio = MacRadio(radio, timer)
        while True:
            request = await self._pipe.requests.get()
            try:
                response = await self._process(mac_radio, request)
            except _Interrupted:
                response = _Response(error=RadioErrorKind.OTHER)
            await self._pipe.responses.put(response)

    async def _process(self, radio: Radio, request: _Request) -> _Response:
        try:
            await self._with_cancel(radio.set_config(request.config))
            if request.tx:
                result = await self._with_cancel(radio.transmit(request.psdu, True))
            else:
                result = await self._with_cancel(radio.receive())
        except RadioError as err:
            return _Response(error=err.kind())

        if result is None:
            return _Response()
        psdu, meta = result
        return _Response(
            psdu=bytes(psdu[: meta.len]), channel=meta.channel, rssi=meta.rssi
        )

    async def _with_cancel(self, awaitable: Awaitable[T]) -> T:
        work = asyncio.ensure_future(awaitable)
        cancel = asyncio.ensure_future(self._pipe.cancel.wait())
        try:
            await asyncio.wait((work, cancel), return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (work, cancel):
                if not task.done():
                    task.cancel()
            await asyncio.gather(work, cancel, return_exceptions=True)
        if work.done() and not work.cancelled():
            return work.result()
        raise _Interrupted


def create_proxy_radio(caps: Capabilities) -> tuple[ProxyRadio, PhyRadioRunner]:
    """Create a connected proxy radio and PHY runner.

    ``caps`` should match the capabilities of the PHY radio given to the runner.
    """
    pipe = _Pipe()
    return ProxyRadio(caps, pipe), PhyRadioRunner(pipe)