"""Protocol layer: varuints, payload and body codecs, framing, builders."""

from .constants import BROADCAST_ADDRESS, Command, DeviceType
from .framing import Packet, decode_stream, frame, split_stream, unframe
from .payload import Payload, decode_payload, encode_payload
