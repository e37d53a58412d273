"""IEEE 802.15.4 radio abstractions for Thread: MAC header parsing, a software MAC radio wrapper, a proxy radio pipe and a signal primitive."""

__version__ = "0.1.0"
__all__ = ["frame", "mac_radio", "proxy", "radio", "signal"]