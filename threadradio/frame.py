"""Minimal IEEE 802.15.4 MAC header parsing for address filtering and ACKs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

FCF_LEN = 2
SEQ_LEN = 1
CRC_LEN = 2

FCF_OFFSET = 0
SEQ_OFFSET = FCF_LEN
ADDRS_OFFSET = SEQ_OFFSET + SEQ_LEN

#: Length of an Imm-ACK PSDU (FCF, sequence number and CRC).
ACK_PSDU_LEN = FCF_LEN + SEQ_LEN + CRC_LEN

BROADCAST_PAN_ID = 0xFFFF
BROADCAST_SHORT_ADDR = 0xFFFF
BROADCAST_EXT_ADDR = 0xFFFF_FFFF_FFFF_FFFF

FCF_FRAME_TYPE_MASK = 0x07
FCF_SECURITY_BIT = 1 << 3
FCF_PENDING_BIT = 1 << 4
FCF_ACK_REQ_BIT = 1 << 5
FCF_PAN_ID_COMPRESSION_BIT = 1 << 6
FCF_DST_ADDR_MODE_SHIFT = 10
FCF_DST_ADDR_MODE_MASK = 0x03 << FCF_DST_ADDR_MODE_SHIFT
FCF_FRAME_VERSION_SHIFT = 12
FCF_FRAME_VERSION_MASK = 0x03 << FCF_FRAME_VERSION_SHIFT


class FrameType(IntEnum):
    """Supported IEEE 802.15.4 frame types."""

    BEACON = 0
    DATA = 1
    ACK = 2
    COMMAND = 3


class FrameVersion(IntEnum):
    """Supported IEEE 802.15.4 frame versions."""

    IEEE802154_2003 = 0
    IEEE802154_2006 = 1


class FrameAddrMode(IntEnum):
    """Supported destination address modes."""

    NOT_PRESENT = 0
    SHORT = 2
    EXTENDED = 3


def frame_type(fcf: int) -> FrameType:
    """Return the frame type from the FCF; raise ValueError if reserved."""
    try:
        return FrameType(fcf & FCF_FRAME_TYPE_MASK)
    except ValueError:
        raise ValueError(f"unsupported frame type in FCF 0x{fcf:04x}") from None


def frame_version(fcf: int) -> FrameVersion:
    """Return the frame version from the FCF; raise ValueError if unsupported."""
    try:
        return FrameVersion((fcf & FCF_FRAME_VERSION_MASK) >> FCF_FRAME_VERSION_SHIFT)
    except ValueError:
        raise ValueError(f"unsupported frame version in FCF 0x{fcf:04x}") from None


def dst_addr_mode(fcf: int) -> FrameAddrMode:
    """Return the destination address mode from the FCF; raise ValueError if reserved."""
    try:
        return FrameAddrMode((fcf & FCF_DST_ADDR_MODE_MASK) >> FCF_DST_ADDR_MODE_SHIFT)
    except ValueError:
        raise ValueError(
            f"unsupported destination address mode in FCF 0x{fcf:04x}"
        ) from None


@dataclass(frozen=True)
class MacHeader:
    """A parsed MAC header; absent addresses are reported as broadcast."""

    fcf: int
    seq: int
    pan_id: int = BROADCAST_PAN_ID
    dst_short_addr: int = BROADCAST_SHORT_ADDR
    dst_ext_addr: int = BROADCAST_EXT_ADDR

    def needs_ack(self) -> bool:
        """Return whether the frame requests an acknowledgement."""
        return bool(self.fcf & FCF_ACK_REQ_BIT)

    def ack_psdu(self) -> bytes:
        """Build the Imm-ACK PSDU for this frame; the CRC bytes are left zero."""
        ack_fcf = int(FrameType.ACK) | (self.fcf & FCF_FRAME_VERSION_MASK)
        return ack_fcf.to_bytes(2, "little") + bytes((self.seq, 0, 0))

    def is_ack_for(self, seq: int) -> bool:
        """Return whether this is an ACK frame for sequence number ``seq``."""
        return frame_type(self.fcf) is FrameType.ACK and self.seq == seq


def _ensure_len(psdu: bytes, length: int) -> None:
    if len(psdu) < length:
        raise ValueError(f"PSDU too short: {len(psdu)} < {length} bytes")


def parse_header(psdu: bytes) -> MacHeader:
    """Parse the MAC header of ``psdu`` (which includes the trailing CRC).

    Raises ValueError if the PSDU is too short or uses a reserved frame
    type, version or destination address mode.
    """
    psdu = bytes(psdu)
    _ensure_len(psdu, ADDRS_OFFSET + CRC_LEN)

    fcf = int.from_bytes(psdu[FCF_OFFSET:SEQ_OFFSET], "little")
    seq = psdu[SEQ_OFFSET]

    frame_type(fcf)
    frame_version(fcf)
    mode = dst_addr_mode(fcf)

    pan_start = ADDRS_OFFSET
    addr_start = pan_start + 2

    if mode is FrameAddrMode.SHORT:
        _ensure_len(psdu, addr_start + 2 + CRC_LEN)
        return MacHeader(
            fcf=fcf,
            seq=seq,
            pan_id=int.from_bytes(psdu[pan_start:addr_start], "little"),
            dst_short_addr=int.from_bytes(psdu[addr_start : addr_start + 2], "little"),
        )
    if mode is FrameAddrMode.EXTENDED:
        _ensure_len(psdu, addr_start + 8 + CRC_LEN)
        return MacHeader(
            fcf=fcf,
            seq=seq,
            pan_id=int.from_bytes(psdu[pan_start:addr_start], "little"),
            dst_ext_addr=int.from_bytes(psdu[addr_start : addr_start + 8], "big"),
        )
    return MacHeader(fcf=fcf, seq=seq)