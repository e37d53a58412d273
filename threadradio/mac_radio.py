"""A radio wrapper that emulates missing MAC offloading in software.

Depending on what the wrapped PHY radio can do in hardware, ``MacRadio``
waits for ACKs of transmitted frames, sends ACKs for received frames and
filters received frames by PAN ID, short address and extended address.
"""

from __future__ import annotations

import abc
import asyncio
import functools
import operator
import time
from collections.abc import Awaitable

from .frame import (
    BROADCAST_EXT_ADDR,
    BROADCAST_PAN_ID,
    BROADCAST_SHORT_ADDR,
    MacHeader,
    parse_header,
)
from .radio import (
    Capabilities,
    Config,
    MacCapabilities,
    PsduMeta,
    Radio,
    RadioError,
    RadioErrorKind,
)

_ALL_MAC_CAPS = functools.reduce(operator.or_, MacCapabilities)


class MacRadioError(RadioError):
    """An error raised by ``MacRadio``.

    ``cause`` is the error of the wrapped radio that led to this one, if any.
    """

    def __init__(self, kind: RadioErrorKind, cause: RadioError | None = None) -> None:
        message = kind.value if cause is None else f"{kind.value}: {cause}"
        super().__init__(kind, message)
        self.cause = cause


class MacRadioTimer(abc.ABC):
    """A high-resolution timer, used to time ACKs in software."""

    @abc.abstractmethod
    def now(self) -> int:
        """Return the current monotonic time in microseconds."""

    @abc.abstractmethod
    async def wait(self, at: int) -> None:
        """Wait until the time reaches ``at`` microseconds; return at once if past."""


class MonotonicTimer(MacRadioTimer):
    """A timer based on the event loop's sleeping and the monotonic clock.

    Its precision may not be enough for strict IEEE 802.15.4 ACK timing.
    """

    def now(self) -> int:
        return time.monotonic_ns() // 1000

    async def wait(self, at: int) -> None:
        while (remaining := at - self.now()) > 0:
            await asyncio.sleep(remaining / 1_000_000)


async def _race(first: Awaitable, second: Awaitable) -> tuple[bool, object]:
    """Run both awaitables; return (True, result) if ``first`` won, else (False, result).

    The loser is cancelled. If both finish together, ``first`` wins.
    """
    first_task = asyncio.ensure_future(first)
    second_task = asyncio.ensure_future(second)
    try:
        await asyncio.wait(
            (first_task, second_task), return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        for task in (first_task, second_task):
            if not task.done():
                task.cancel()
        for task in (first_task, second_task):
            if task.cancelled() or not task.done():
                try:
                    await task
                except asyncio.CancelledError:
                    pass
    if first_task.done() and not first_task.cancelled():
        return True, first_task.result()
    return False, second_task.result()


class MacRadio(Radio):
    """Wraps a PHY radio and handles in software the MAC duties it lacks."""

    #: How long to wait for the ACK of a transmitted frame, in microseconds.
    TX_ACK_WAIT_US = 500 * 1000
    #: How long after a reception to send its ACK, in microseconds.
    RX_ACK_SEND_US = 10

    def __init__(self, radio: Radio, timer: MacRadioTimer) -> None:
        self._radio = radio
        self._timer = timer
        self._promiscuous = False
        self._pan_id = BROADCAST_PAN_ID
        self._short_addr = BROADCAST_SHORT_ADDR
        self._ext_addr = BROADCAST_EXT_ADDR

    def caps(self) -> Capabilities:
        return self._radio.caps()

    def mac_caps(self) -> MacCapabilities:
        return self._radio.mac_caps()

    async def set_config(self, config: Config) -> None:
        try:
            await self._radio.set_config(config)
        except RadioError as err:
            raise MacRadioError(err.kind(), err) from err

        self._promiscuous = config.promiscuous
        self._pan_id = BROADCAST_PAN_ID if config.pan_id is None else config.pan_id
        self._short_addr = (
            BROADCAST_SHORT_ADDR if config.short_addr is None else config.short_addr
        )
        self._ext_addr = (
            BROADCAST_EXT_ADDR if config.ext_addr is None else config.ext_addr
        )

    async def transmit(
        self, psdu: bytes, want_ack: bool
    ) -> tuple[bytes, PsduMeta] | None:
        if MacCapabilities.TX_ACK in self._radio.mac_caps():
            try:
                return await self._radio.transmit(psdu, want_ack)
            except RadioError as err:
                raise MacRadioError(err.kind(), err) from err

        try:
            await self._radio.transmit(psdu, False)
        except RadioError as err:
            raise MacRadioError(err.kind(), err) from err

        sent_at = self._timer.now()

        try:
            header = parse_header(psdu)
        except ValueError:
            raise MacRadioError(RadioErrorKind.TX_INVALID) from None

        if not header.needs_ack():
            return None

        try:
            got_ack, result = await _race(
                self._radio.receive(),
                self._timer.wait(sent_at + self.TX_ACK_WAIT_US),
            )
        except RadioError as err:
            raise MacRadioError(RadioErrorKind.RX_ACK_FAILED, err) from err

        if not got_ack:
            raise MacRadioError(RadioErrorKind.RX_ACK_TIMEOUT)

        ack_psdu, _ack_meta = result
        try:
            ack_header = parse_header(ack_psdu)
        except ValueError:
            raise MacRadioError(RadioErrorKind.RX_ACK_INVALID) from None

        if not ack_header.is_ack_for(header.seq):
            raise MacRadioError(RadioErrorKind.RX_ACK_INVALID)

        return None

    def _accepted(self, header: MacHeader, mac_caps: MacCapabilities) -> bool:
        if (
            MacCapabilities.FILTER_PAN_ID not in mac_caps
            and header.pan_id != BROADCAST_PAN_ID
            and header.pan_id != self._pan_id
        ):
            return False
        if (
            MacCapabilities.FILTER_SHORT_ADDR not in mac_caps
            and header.dst_short_addr != BROADCAST_SHORT_ADDR
            and header.dst_short_addr != self._short_addr
        ):
            return False
        if (
            MacCapabilities.FILTER_EXT_ADDR not in mac_caps
            and header.dst_ext_addr != BROADCAST_EXT_ADDR
            and header.dst_ext_addr != self._ext_addr
        ):
            return False
        return True

    async def receive(self) -> tuple[bytes, PsduMeta]:
        while True:
            try:
                psdu, meta = await self._radio.receive()
            except RadioError as err:
                raise MacRadioError(err.kind(), err) from err

            ack_at = self._timer.now() + self.RX_ACK_SEND_US
            mac_caps = self._radio.mac_caps()

            if mac_caps != _ALL_MAC_CAPS:
                try:
                    header = parse_header(psdu)
                except ValueError:
                    continue

                if MacCapabilities.PROMISCUOUS not in mac_caps and not self._promiscuous:
                    if not self._accepted(header, mac_caps):
                        continue

                    if MacCapabilities.RX_ACK not in mac_caps and header.needs_ack():
                        ack = header.ack_psdu()
                        if self._timer.now() < ack_at:
                            await self._timer.wait(ack_at)
                        try:
                            await self._radio.transmit(ack, False)
                        except RadioError as err:
                            raise MacRadioError(
                                RadioErrorKind.TX_ACK_FAILED, err
                            ) from err

            return psdu, meta