"""The IEEE 802.15.4 PHY radio interface and its associated types."""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass, field


class RadioErrorKind(enum.Enum):
    """The kind of a radio error."""

    TX_INVALID = "invalid TX frame"
    RX_INVALID = "invalid RX frame"
    RX_FAILED = "receiving failed"
    TX_FAILED = "transmitting failed"
    TX_ACK_FAILED = "sending an ACK frame failed"
    RX_ACK_FAILED = "receiving an ACK frame failed"
    TX_ACK_TIMEOUT = "timeout when preparing an ACK frame"
    RX_ACK_TIMEOUT = "no ACK received"
    RX_ACK_INVALID = "invalid ACK received"
    OTHER = "other radio error"


class RadioError(Exception):
    """An error raised by a radio operation."""

    def __init__(
        self, kind: RadioErrorKind = RadioErrorKind.OTHER, message: str | None = None
    ) -> None:
        super().__init__(message if message is not None else kind.value)
        self._kind = kind

    def kind(self) -> RadioErrorKind:
        """Return the kind of this error."""
        return self._kind


class CcaMode(enum.Enum):
    """Clear channel assessment mode."""

    CARRIER = "carrier"
    ED = "ed"
    CARRIER_OR_ED = "carrier_or_ed"
    CARRIER_AND_ED = "carrier_and_ed"


def _check_range(name: str, value: int, low: int, high: int) -> None:
    if not low <= value <= high:
        raise ValueError(f"{name} must be in {low}..{high}, got {value}")


@dataclass(frozen=True)
class Cca:
    """Carrier sense and/or energy detection settings.

    ``ed_threshold`` (0..255) is only meaningful for the modes that involve
    energy detection: measurements above it mean the channel is busy.
    """

    mode: CcaMode = CcaMode.CARRIER
    ed_threshold: int = 0

    def __post_init__(self) -> None:
        _check_range("ed_threshold", self.ed_threshold, 0, 0xFF)


class Capabilities(enum.IntFlag):
    """Radio PHY capabilities."""

    RX_WHEN_IDLE = 0x01
    SLEEP = 0x02
    ENERGY_SCAN = 0x04


class MacCapabilities(enum.IntFlag):
    """Radio MAC-offloading capabilities."""

    TX_ACK = 0x01
    RX_ACK = 0x02
    PROMISCUOUS = 0x04
    FILTER_PAN_ID = 0x08
    FILTER_SHORT_ADDR = 0x10
    FILTER_EXT_ADDR = 0x20


@dataclass(frozen=True)
class Config:
    """Radio configuration.

    The address filters and the promiscuous and receive-when-idle flags are
    disregarded by radios that lack the corresponding capability.
    """

    channel: int = 11
    power: int = 8
    cca: Cca = field(default_factory=Cca)
    sfd: int = 0
    promiscuous: bool = False
    rx_when_idle: bool = False
    pan_id: int | None = None
    short_addr: int | None = None
    ext_addr: int | None = None

    def __post_init__(self) -> None:
        _check_range("channel", self.channel, 0, 0xFF)
        _check_range("power", self.power, -128, 127)
        _check_range("sfd", self.sfd, 0, 0xFF)
        if self.pan_id is not None:
            _check_range("pan_id", self.pan_id, 0, 0xFFFF)
        if self.short_addr is not None:
            _check_range("short_addr", self.short_addr, 0, 0xFFFF)
        if self.ext_addr is not None:
            _check_range("ext_addr", self.ext_addr, 0, 0xFFFF_FFFF_FFFF_FFFF)


@dataclass(frozen=True)
class PsduMeta:
    """Metadata of a received frame.

    ``len`` is the PSDU length including the CRC; ``rssi`` is in dBm, or
    ``None`` when the radio cannot report it.
    """

    len: int
    channel: int
    rssi: int | None = None

    def __post_init__(self) -> None:
        if self.len < 0:
            raise ValueError(f"len must not be negative, got {self.len}")
        _check_range("channel", self.channel, 0, 0xFF)
        if self.rssi is not None:
            _check_range("rssi", self.rssi, -128, 127)


class Radio(abc.ABC):
    """An IEEE 802.15.4 PHY radio, possibly with some MAC offloading.

    Missing MAC capabilities (ACKs, address filtering) are emulated in
    software by wrapping the radio. Retransmission, duplicate detection and
    MAC security are not the radio's concern.
    """

    @abc.abstractmethod
    def caps(self) -> Capabilities:
        """Return the PHY capabilities."""

    @abc.abstractmethod
    def mac_caps(self) -> MacCapabilities:
        """Return the MAC-offloading capabilities."""

    @abc.abstractmethod
    async def set_config(self, config: Config) -> None:
        """Apply ``config``; raise RadioError on failure."""

    @abc.abstractmethod
    async def transmit(
        self, psdu: bytes, want_ack: bool
    ) -> tuple[bytes, PsduMeta] | None:
        """Transmit ``psdu`` (which includes the CRC).

        When ``want_ack`` is true and the radio reports received ACKs, return
        the ACK PSDU and its metadata; otherwise return ``None``.
        Raise RadioError on failure.
        """

    @abc.abstractmethod
    async def receive(self) -> tuple[bytes, PsduMeta]:
        """Wait for a frame and return its PSDU and metadata.

        Raise RadioError on failure.
        """