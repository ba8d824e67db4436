"""Exception hierarchy for the codec, the hub and the transport.

Codec errors describe a single bad packet and are caught per packet by
:func:`smarthub_mcp.protocol.framing.decode_stream`. Transport errors end
the current hub run.
"""

from __future__ import annotations


class SmartHubError(Exception):
    """Base class for every error raised by this package."""


class CodecError(SmartHubError):
    """A byte sequence could not be decoded as protocol data."""


class MalformedVaruint(CodecError):
    """Overlong, non-minimal or truncated variable-length integer."""


class MalformedPayload(CodecError):
    """Payload or command body shorter (or longer) than its shape requires."""


class ChecksumMismatch(CodecError):
    """The CRC-8 trailer of a framed packet does not match its payload."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"CRC-8 mismatch: packet carries 0x{expected:02X}, "
            f"payload computes to 0x{actual:02X}"
        )
        self.expected = expected
        self.actual = actual


class TruncatedStream(CodecError):
    """A packet stream ended in the middle of a packet.

    ``packets`` holds the complete packet slices that preceded the break.
    """

    def __init__(self, message: str, packets: list[bytes] | None = None) -> None:
        super().__init__(message)
        self.packets = packets or []


class PayloadTooLarge(CodecError):
    """Encoded payload does not fit the one-byte length field."""


class UnknownDeviceTypeOrCommand(CodecError):
    """Marker for an unknown ``(device type, command)`` pair.

    Never raised: such payloads decode to an opaque body instead. Kept so
    callers can name the condition, e.g. ``OpaqueBody.reason``.
    """


class TransportError(SmartHubError):
    """The transport failed in a way that aborts the run."""


class TransportClosed(TransportError):
    """The transport has no more data; the run ends cleanly."""
