import pytest

from rtisan.dio import (
    DIO_NULL,
    STMPIN_ALTFUNC,
    STMPIN_ANALOG,
    STMPIN_INPUT,
    STMPIN_OUTPUT,
    DriveStrength,
    GpioBank,
    InitTag,
    PinFunc,
    Pull,
    make_init_tag,
    make_tag,
)


def field(reg, pos, width):
    return (reg >> (pos * width)) & ((1 << width) - 1)


def test_init_tag_round_trip():
    tag = InitTag(port_offset=0x400, pin=1 << 7, func=PinFunc.ALTFUNC_OUT,
                  pull=Pull.DOWN, drive=DriveStrength.STRONG, initial=True,
                  open_drain=True, alt_func=5)
    assert InitTag.decode(tag.encode()) == tag


def test_encode_matches_helpers():
    tag = InitTag(port_offset=0x800, pin=1 << 2, func=PinFunc.OUTPUT,
                  drive=DriveStrength.MEDIUM, initial=True)
    expected = make_tag(0x800, 1 << 2) | make_init_tag(
        PinFunc.OUTPUT, Pull.NONE, DriveStrength.MEDIUM, True, False, 0)
    assert tag.encode() == expected
    assert int(tag) == expected


def test_make_tag_keeps_pin_in_low_bits():
    value = make_tag(0x400, 1 << 9)
    assert value & 0xFFFF == 1 << 9
    assert value >> 16 == 0x400


def test_light_and_weak_share_value():
    light = make_init_tag(PinFunc.OUTPUT, Pull.NONE, DriveStrength.LIGHT, False, False, 0)
    weak = make_init_tag(PinFunc.OUTPUT, Pull.NONE, DriveStrength.WEAK, False, False, 0)
    assert light == weak
    gpio = GpioBank()
    gpio.init(InitTag(pin=1 << 3, func=PinFunc.OUTPUT, drive=DriveStrength.LIGHT))
    assert field(gpio.ports[0].ospeedr, 3, 2) == 0


@pytest.mark.parametrize("pin", [-1, 0x10000])
def test_make_tag_rejects_bad_pin(pin):
    with pytest.raises(ValueError):
        make_tag(0, pin)


def test_make_init_tag_rejects_wide_alt_func():
    with pytest.raises(ValueError):
        make_init_tag(PinFunc.INPUT, Pull.NONE, DriveStrength.WEAK, False, False, 16)


def test_null_tag_does_nothing():
    gpio = GpioBank()
    gpio.init(DIO_NULL)
    gpio.high(DIO_NULL)
    assert gpio.ports == {}
    assert gpio.read(DIO_NULL) is False


def test_output_initial_level_and_mode():
    gpio = GpioBank()
    tag = InitTag(port_offset=0x400, pin=1 << 5, func=PinFunc.OUTPUT,
                  drive=DriveStrength.STRONG, initial=True)
    gpio.init(tag)
    port = gpio.ports[0x400]
    assert field(port.moder, 5, 2) == STMPIN_OUTPUT
    assert field(port.ospeedr, 5, 2) == DriveStrength.STRONG
    assert field(port.otyper, 5, 1) == 0
    assert gpio.read(tag) is True


def test_open_drain_output_requests_pullup():
    gpio = GpioBank()
    tag = InitTag(port_offset=0, pin=1 << 3, func=PinFunc.OUTPUT, open_drain=True)
    gpio.init(tag)
    port = gpio.ports[0]
    assert field(port.pupdr, 3, 2) == Pull.UP
    assert field(port.otyper, 3, 1) == 1
    assert gpio.read(tag) is False


def test_write_and_toggle():
    gpio = GpioBank()
    tag = InitTag(pin=1 << 1, func=PinFunc.OUTPUT)
    gpio.init(tag)
    gpio.write(tag, True)
    assert gpio.read(tag) is True
    gpio.toggle(tag)
    assert gpio.read(tag) is False
    gpio.toggle(tag)
    assert gpio.read(tag) is True
    gpio.low(tag)
    assert gpio.read(tag) is False


def test_input_reads_input_register():
    gpio = GpioBank()
    tag = InitTag(port_offset=0xC00, pin=1 << 4, func=PinFunc.INPUT, pull=Pull.DOWN)
    gpio.init(tag)
    port = gpio.ports[0xC00]
    assert field(port.moder, 4, 2) == STMPIN_INPUT
    assert field(port.pupdr, 4, 2) == Pull.DOWN
    assert gpio.read(tag) is False
    port.idr |= 1 << 4
    assert gpio.read(tag) is True


def test_analog_mode():
    gpio = GpioBank()
    tag = InitTag(pin=1 << 6, func=PinFunc.ANALOG)
    gpio.init(tag)
    port = gpio.ports[0]
    assert field(port.moder, 6, 2) == STMPIN_ANALOG
    assert field(port.pupdr, 6, 2) == Pull.NONE


def test_altfunc_output_high_pin_uses_upper_register():
    gpio = GpioBank()
    tag = InitTag(pin=1 << 10, func=PinFunc.ALTFUNC_OUT, alt_func=7,
                  drive=DriveStrength.MEDIUM)
    gpio.init(tag)
    port = gpio.ports[0]
    assert field(port.afr[1], 10 - 8, 4) == 7
    assert port.afr[0] == 0
    assert field(port.moder, 10, 2) == STMPIN_ALTFUNC


def test_altfunc_input_low_pin():
    gpio = GpioBank()
    tag = InitTag(pin=1 << 2, func=PinFunc.ALTFUNC_IN, alt_func=4, pull=Pull.UP)
    gpio.init(tag)
    port = gpio.ports[0]
    assert field(port.afr[0], 2, 4) == 4
    assert field(port.pupdr, 2, 2) == Pull.UP
    assert field(port.moder, 2, 2) == STMPIN_ALTFUNC


def test_ports_are_independent():
    gpio = GpioBank()
    a = InitTag(port_offset=0x400, pin=1, func=PinFunc.OUTPUT, initial=True)
    b = InitTag(port_offset=0x800, pin=1, func=PinFunc.OUTPUT)
    gpio.init(a)
    gpio.init(b)
    assert gpio.read(a) is True
    assert gpio.read(b) is False