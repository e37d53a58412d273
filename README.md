# threadradio

Asyncio building blocks for driving an IEEE 802.15.4 radio on behalf of a
Thread stack.

## What is in it

- `threadradio.frame` parses the part of an 802.15.4 MAC header needed for
  address filtering and immediate ACKs. `parse_header(psdu)` returns a
  `MacHeader` (frame control field, sequence number, PAN ID, destination
  short and extended address; absent addresses read as broadcast) and raises
  `ValueError` for a PSDU that is too short or uses a reserved frame type,
  version or destination address mode. `MacHeader.needs_ack()`,
  `MacHeader.ack_psdu()` and `MacHeader.is_ack_for(seq)` cover the ACK side.
  `frame_type`, `frame_version` and `dst_addr_mode` decode single fields of
  the frame control field into `FrameType`, `FrameVersion` and
  `FrameAddrMode`.
- `threadradio.radio` defines the abstract `Radio` interface a PHY driver
  implements, together with `Config` (channel 11, power 8 dBm and carrier
  sense by default), `Cca` and `CcaMode`, `PsduMeta`, the `Capabilities` and
  `MacCapabilities` flags, and `RadioError` with its `RadioErrorKind`.
  `Config`, `Cca` and `PsduMeta` raise `ValueError` for out-of-range fields.
- `threadradio.mac_radio` provides `MacRadio`, a `Radio` that wraps a PHY
  radio and, for each capability the radio's `mac_caps()` does not claim,
  does the work in software. It waits up to `MacRadio.TX_ACK_WAIT_US` for the
  ACK of a transmitted frame that asks for one. It sends ACKs for received
  frames, and drops received frames that cannot be parsed or whose PAN ID,
  short or extended destination address does not match the configured ones
  (broadcast always passes). Filtering and ACK sending are skipped in
  promiscuous mode. Failures are raised as `MacRadioError`, with the wrapped
  radio's error in `cause`. It needs a `MacRadioTimer` counting in
  microseconds; `MonotonicTimer` is one built on the monotonic clock and
  `asyncio.sleep`.
- `threadradio.proxy` splits a radio in two with `create_proxy_radio(caps)`.
  You get a `ProxyRadio` that the stack talks to and a `PhyRadioRunner` whose
  `run(radio, timer)` serves requests forever on the real radio, wrapped in a
  `MacRadio`. A request that the proxy abandons is cancelled on the runner's
  side, and `ProxyRadio.transmit` refuses PSDUs longer than 127 bytes with
  `ValueError`.
- `threadradio.signal` holds `Signal`, a single-slot "latest value" primitive
  with `signal`, `wait`, `wait_signaled`, `try_take`, `signaled` and `reset`.

## Installing

From a checkout of the project:

    pip install .

For running the tests:

    pip install ".[test]"
    pytest

## Using it

Implement `Radio` for your driver. It needs `caps()`, `mac_caps()`, an async
`set_config(config)`, an async `transmit(psdu, want_ack)` returning either
`None` or an `(ack_psdu, PsduMeta)` pair, and an async `receive()` returning
a `(psdu, PsduMeta)` pair. Then run it behind a proxy:

```python
import asyncio

from threadradio.mac_radio import MonotonicTimer
from threadradio.proxy import create_proxy_radio
from threadradio.radio import Capabilities, Config


async def main(phy_radio):
    proxy, runner = create_proxy_radio(Capabilities.RX_WHEN_IDLE)
    runner_task = asyncio.create_task(runner.run(phy_radio, MonotonicTimer()))

    await proxy.set_config(Config(channel=15, pan_id=0x1234))
    psdu, meta = await proxy.receive()
    print(meta.channel, psdu.hex())

    runner_task.cancel()
```

The configuration given to `ProxyRadio.set_config` is sent along with the
next transmit or receive request. It is applied to the PHY radio before that
request runs.

Errors come out as `RadioError` exceptions, and each one reports a
`RadioErrorKind` through its `kind()` method.

## What it does not do

The package contains no radio drivers and no Thread stack: you supply the
`Radio` implementation that talks to the hardware. When `MacRadio` has
checked an ACK in software, it does not hand the ACK frame back, and its
`transmit` returns `None`. Only a radio that receives ACKs itself can report
them.