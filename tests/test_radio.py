import dataclasses

import pytest

from threadradio.radio import (
    Capabilities,
    Cca,
    CcaMode,
    Config,
    MacCapabilities,
    PsduMeta,
    Radio,
    RadioError,
    RadioErrorKind,
)


class _LoopbackRadio(Radio):
    def __init__(self):
        self.config = Config()
        self.frames = []

    def caps(self):
        return Capabilities.RX_WHEN_IDLE

    def mac_caps(self):
        return MacCapabilities(0)

    async def set_config(self, config):
        self.config = config

    async def transmit(self, psdu, want_ack):
        self.frames.append(bytes(psdu))
        return None

    async def receive(self):
        psdu = self.frames.pop(0)
        return psdu, PsduMeta(len(psdu), self.config.channel)


class _FailingRadio(_LoopbackRadio):
    def __init__(self, error):
        super().__init__()
        self.error = error

    async def transmit(self, psdu, want_ack):
        raise self.error


def test_radio_is_abstract():
    with pytest.raises(TypeError):
        Radio()


def test_radio_error_kind_and_message():
    err = RadioError(RadioErrorKind.RX_ACK_TIMEOUT)
    assert err.kind() is RadioErrorKind.RX_ACK_TIMEOUT
    assert str(err) == RadioErrorKind.RX_ACK_TIMEOUT.value


def test_radio_error_defaults_to_other():
    err = RadioError(message="boom")
    assert err.kind() is RadioErrorKind.OTHER
    assert str(err) == "boom"


@pytest.mark.asyncio
async def test_radio_error_propagates_from_transmit():
    error = RadioError(RadioErrorKind.TX_FAILED)
    radio = _FailingRadio(error)
    await radio.set_config(Config(channel=12))
    with pytest.raises(RadioError) as info:
        await radio.transmit(b"\x01\x02", False)
    assert info.value is error
    assert info.value.kind() is RadioErrorKind.TX_FAILED
    assert str(info.value) == RadioErrorKind.TX_FAILED.value
    assert radio.config == Config(channel=12)


def test_capability_bits_match_source():
    assert Capabilities(0x07) == (
        Capabilities.RX_WHEN_IDLE | Capabilities.SLEEP | Capabilities.ENERGY_SCAN
    )
    assert Capabilities(0x02) is Capabilities.SLEEP
    assert MacCapabilities(0x20) is MacCapabilities.FILTER_EXT_ADDR
    assert _LoopbackRadio().caps() == Capabilities(0x01)


def test_mac_caps_all_contains_every_flag():
    everything = ~MacCapabilities(0)
    for flag in MacCapabilities:
        assert flag in everything
    assert MacCapabilities.RX_ACK not in MacCapabilities.TX_ACK


def test_config_defaults():
    config = Config()
    assert config.channel == 11
    assert config.power == 8
    assert config.cca == Cca(CcaMode.CARRIER)
    assert config.pan_id is None
    assert config.ext_addr is None


def test_config_equality_and_replace():
    base = Config()
    changed = dataclasses.replace(base, channel=15, pan_id=0x1234)
    assert changed != base
    assert changed == Config(channel=15, pan_id=0x1234)
    assert hash(changed) == hash(Config(channel=15, pan_id=0x1234))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"channel": 256},
        {"channel": -1},
        {"power": 128},
        {"power": -129},
        {"sfd": 300},
        {"pan_id": 0x10000},
        {"short_addr": -1},
        {"ext_addr": 1 << 64},
    ],
)
def test_config_rejects_out_of_range(kwargs):
    with pytest.raises(ValueError):
        Config(**kwargs)


def test_cca_threshold_range():
    assert Cca(CcaMode.ED, 200).ed_threshold == 200
    with pytest.raises(ValueError):
        Cca(CcaMode.ED, 256)


def test_psdu_meta_validation():
    meta = PsduMeta(len=10, channel=11, rssi=-40)
    assert (meta.len, meta.channel, meta.rssi) == (10, 11, -40)
    with pytest.raises(ValueError):
        PsduMeta(len=-1, channel=11)
    with pytest.raises(ValueError):
        PsduMeta(len=5, channel=11, rssi=200)


@pytest.mark.asyncio
async def test_concrete_radio_round_trip():
    radio = _LoopbackRadio()
    await radio.set_config(Config(channel=20))
    assert await radio.transmit(b"\x01\x02\x03", False) is None
    psdu, meta = await radio.receive()
    assert psdu == b"\x01\x02\x03"
    assert meta == PsduMeta(3, 20)
    assert Capabilities.RX_WHEN_IDLE in radio.caps()