"""USB descriptors for a composite device with two CDC-ACM serial ports."""

from __future__ import annotations

from typing import Sequence

# Descriptor types defined by the USB specification.
DESC_TYPE_DEVICE = 0x01
DESC_TYPE_CONFIGURATION = 0x02
DESC_TYPE_STRING = 0x03
DESC_TYPE_INTERFACE = 0x04
DESC_TYPE_ENDPOINT = 0x05
DESC_TYPE_IAD = 0x0B

CONFIGURATION_DESC_SIZE = 9
INTERFACE_DESC_SIZE = 9
ENDPOINT_DESC_SIZE = 7
DEVICE_DESC_SIZE = 0x12
LANGID_DESC_SIZE = 4
SERIAL_DESC_SIZE = 0x1A

ENDPOINT_TYPE_BULK = 0x02
ENDPOINT_TYPE_INTERRUPT = 0x03

CONFIG_SELF_POWERED = 0xC0
MAX_EP0_SIZE = 64
MAX_NUM_CONFIGURATION = 1

CDC_COMMUNICATION_INTERFACE_CLASS = 0x02
CDC_DATA_INTERFACE_CLASS = 0x0A
CDC_ABSTRACT_CONTROL_MODEL = 0x02
CDC_CS_INTERFACE = 0x24
CDC_HEADER = 0x00
CDC_CALL_MANAGEMENT = 0x01
CDC_ABSTRACT_CONTROL_MANAGEMENT = 0x02
CDC_UNION = 0x06
CDC_V1_10 = 0x0110
CDC_CMD_PACKET_SIZE = 8
CDC_DATA_FS_MAX_PACKET_SIZE = 64

CDC_IF_DESC_SET_SIZE = (INTERFACE_DESC_SIZE + 0x05 + 0x05 + 0x04 + 0x05
                        + ENDPOINT_DESC_SIZE + INTERFACE_DESC_SIZE
                        + 2 * ENDPOINT_DESC_SIZE)
IAD_CDC_IF_DESC_SET_SIZE = 8 + CDC_IF_DESC_SET_SIZE

# Interface numbers of the two serial ports.
CDC_CIF_NUM0 = 0
CDC_DIF_NUM0 = 1
CDC_CIF_NUM1 = 2
CDC_DIF_NUM1 = 3
NUM_INTERFACES = 4

VID = 0x20A0
PID = 0x42A7
LANGID = 0x0409
IDX_MFC_STR = 1
IDX_PRODUCT_STR = 2
IDX_SERIAL_STR = 3

MANUFACTURER_STRING = "RTisan"
PRODUCT_STRING = "MControl Motion Controller"
CONFIGURATION_STRING = "Virtual com port (CDCACM/IAD)"
INTERFACE_STRING = "Virtual com port (CDCACM/IAD)"


def _word(value: int) -> list[int]:
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"{value} does not fit in 16 bits")
    return [value & 0xFF, (value >> 8) & 0xFF]


def int_to_unicode(value: int, length: int) -> bytes:
    """Top ``length`` hex digits of a 32-bit ``value`` as UTF-16LE characters."""
    if length < 0:
        raise ValueError("length must not be negative")
    value &= 0xFFFFFFFF
    out = bytearray()
    for _ in range(length):
        out += b"%X\x00" % (value >> 28)
        value = (value << 4) & 0xFFFFFFFF
    return bytes(out)


def string_descriptor(text: str) -> bytes:
    """String descriptor holding ``text`` in UTF-16LE."""
    payload = text.encode("utf-16-le")
    total = len(payload) + 2
    if total > 0xFF:
        raise ValueError("string too long for a descriptor")
    return bytes([total, DESC_TYPE_STRING]) + payload


def device_descriptor() -> bytes:
    """Standard device descriptor announcing an IAD composite device."""
    return bytes([
        DEVICE_DESC_SIZE,
        DESC_TYPE_DEVICE,
        *_word(0x0200),          # bcdUSB 2.00
        0xEF, 0x02, 0x01,        # miscellaneous class, common, IAD
        MAX_EP0_SIZE,
        *_word(VID),
        *_word(PID),
        *_word(0x0200),          # bcdDevice 2.00
        IDX_MFC_STR,
        IDX_PRODUCT_STR,
        IDX_SERIAL_STR,
        MAX_NUM_CONFIGURATION,
    ])


def langid_descriptor() -> bytes:
    """Language-id string descriptor (US English)."""
    return bytes([LANGID_DESC_SIZE, DESC_TYPE_STRING, *_word(LANGID)])


def serial_descriptor(id1: int, id2: int, id3: int) -> bytes:
    """Serial number descriptor built from the three unique-id words.

    When ``id1 + id3`` wraps to zero the digits are left blank (zero).
    """
    serial0 = (id1 + id3) & 0xFFFFFFFF
    out = bytearray(SERIAL_DESC_SIZE)
    out[0] = SERIAL_DESC_SIZE
    out[1] = DESC_TYPE_STRING
    if serial0:
        out[2:18] = int_to_unicode(serial0, 8)
        out[18:26] = int_to_unicode(id2, 4)
    return bytes(out)


def cdc_interface_set(com_if: int, dat_if: int, com_in_ep: int,
                      dat_out_ep: int, dat_in_ep: int) -> bytes:
    """Communication and data interfaces of one CDC-ACM port."""
    return bytes([
        # Communication interface
        INTERFACE_DESC_SIZE, DESC_TYPE_INTERFACE, com_if, 0x00, 0x01,
        CDC_COMMUNICATION_INTERFACE_CLASS, CDC_ABSTRACT_CONTROL_MODEL,
        0x01, 0x00,
        # Header functional descriptor
        0x05, CDC_CS_INTERFACE, CDC_HEADER, *_word(CDC_V1_10),
        # Call management functional descriptor
        0x05, CDC_CS_INTERFACE, CDC_CALL_MANAGEMENT, 0x03, dat_if,
        # Abstract control management functional descriptor
        0x04, CDC_CS_INTERFACE, CDC_ABSTRACT_CONTROL_MANAGEMENT, 0x02,
        # Union functional descriptor
        0x05, CDC_CS_INTERFACE, CDC_UNION, com_if, dat_if,
        # Notification endpoint, interrupt IN
        ENDPOINT_DESC_SIZE, DESC_TYPE_ENDPOINT, com_in_ep,
        ENDPOINT_TYPE_INTERRUPT, *_word(CDC_CMD_PACKET_SIZE), 0x07,
        # Data interface
        INTERFACE_DESC_SIZE, DESC_TYPE_INTERFACE, dat_if, 0x00, 0x02,
        CDC_DATA_INTERFACE_CLASS, 0x00, 0x00, 0x00,
        # Bulk OUT
        ENDPOINT_DESC_SIZE, DESC_TYPE_ENDPOINT, dat_out_ep,
        ENDPOINT_TYPE_BULK, *_word(CDC_DATA_FS_MAX_PACKET_SIZE), 0x00,
        # Bulk IN
        ENDPOINT_DESC_SIZE, DESC_TYPE_ENDPOINT, dat_in_ep,
        ENDPOINT_TYPE_BULK, *_word(CDC_DATA_FS_MAX_PACKET_SIZE), 0x00,
    ])


def iad_cdc_interface_set(com_if: int, dat_if: int, com_in_ep: int,
                          dat_out_ep: int, dat_in_ep: int) -> bytes:
    """One CDC-ACM port preceded by its interface association descriptor."""
    iad = bytes([
        0x08, DESC_TYPE_IAD, com_if, 0x02,
        CDC_COMMUNICATION_INTERFACE_CLASS, CDC_ABSTRACT_CONTROL_MODEL,
        0x01, 0x00,
    ])
    return iad + cdc_interface_set(com_if, dat_if, com_in_ep,
                                   dat_out_ep, dat_in_ep)


def configuration_descriptor(first_endpoints: Sequence[int],
                             second_endpoints: Sequence[int]) -> bytes:
    """Full configuration with two serial ports.

    Each endpoint argument is ``(command_in, data_out, data_in)``.
    """
    first = tuple(first_endpoints)
    second = tuple(second_endpoints)
    if len(first) != 3 or len(second) != 3:
        raise ValueError("each port needs three endpoint addresses")
    total = CONFIGURATION_DESC_SIZE + 2 * IAD_CDC_IF_DESC_SET_SIZE
    header = bytes([
        CONFIGURATION_DESC_SIZE,
        DESC_TYPE_CONFIGURATION,
        *_word(total),
        NUM_INTERFACES,
        0x01,                    # bConfigurationValue
        0x00,                    # iConfiguration
        CONFIG_SELF_POWERED,
        0,                       # bMaxPower
    ])
    return (header
            + iad_cdc_interface_set(CDC_CIF_NUM0, CDC_DIF_NUM0, *first)
            + iad_cdc_interface_set(CDC_CIF_NUM1, CDC_DIF_NUM1, *second))