"""Digital I/O pin tags and a simulated bank of GPIO port registers."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Union

DIO_NULL = 0

# Mode register values of the port hardware.
STMPIN_INPUT = 0
STMPIN_OUTPUT = 1
STMPIN_ALTFUNC = 2
STMPIN_ANALOG = 3

_FUNC_SHIFT, _FUNC_MASK = 32, 0x0F
_PULL_SHIFT, _PULL_MASK = 36, 0x0F
_DRIVE_SHIFT, _DRIVE_MASK = 40, 0x0F
_INITIAL_SHIFT = 44
_OD_SHIFT = 45
_ALTFUNC_SHIFT, _ALTFUNC_MASK = 46, 0x0F


class PinFunc(enum.IntEnum):
    """What a pin is configured to do."""

    INPUT = 0
    OUTPUT = 1
    ALTFUNC_IN = 2
    ALTFUNC_OUT = 3
    ANALOG = 4


class Pull(enum.IntEnum):
    """Pull-up / pull-down configuration."""

    NONE = 0
    UP = 1
    DOWN = 2


class DriveStrength(enum.IntEnum):
    """Output speed setting; the lightest two share a register value."""

    WEAK = 0
    LIGHT = 0
    MEDIUM = 1
    STRONG = 3


def make_tag(port_offset: int, pin: int) -> int:
    """Pin tag for the pins in bit mask ``pin`` of the port at ``port_offset``."""
    if not 0 <= port_offset <= 0xFFFF:
        raise ValueError("port offset must be in 0..0xffff")
    if not 0 <= pin <= 0xFFFF:
        raise ValueError("pin mask must be in 0..0xffff")
    return (port_offset << 16) | pin


def _check_width(name: str, value: int, mask: int) -> int:
    value = int(value)
    if not 0 <= value <= mask:
        raise ValueError(f"{name} must be in 0..{mask}")
    return value


def make_init_tag(func: int, pull: int, drive: int, initial: bool,
                  open_drain: bool, alt_func: int) -> int:
    """Configuration bits to OR with a pin tag to form an init tag."""
    return (
        (_check_width("func", func, _FUNC_MASK) << _FUNC_SHIFT)
        | (_check_width("pull", pull, _PULL_MASK) << _PULL_SHIFT)
        | (_check_width("drive", drive, _DRIVE_MASK) << _DRIVE_SHIFT)
        | (int(bool(initial)) << _INITIAL_SHIFT)
        | (int(bool(open_drain)) << _OD_SHIFT)
        | (_check_width("alt_func", alt_func, _ALTFUNC_MASK) << _ALTFUNC_SHIFT)
    )


@dataclass(frozen=True)
class InitTag:
    """A pin together with how it should be configured."""

    port_offset: int = 0
    pin: int = 0
    func: PinFunc = PinFunc.INPUT
    pull: Pull = Pull.NONE
    drive: DriveStrength = DriveStrength.WEAK
    initial: bool = False
    open_drain: bool = False
    alt_func: int = 0

    def encode(self) -> int:
        """Pack into the 64-bit integer form."""
        return make_tag(self.port_offset, self.pin) | make_init_tag(
            self.func, self.pull, self.drive, self.initial,
            self.open_drain, self.alt_func)

    @classmethod
    def decode(cls, value: int) -> InitTag:
        """Unpack the 64-bit integer form."""
        value = int(value)
        return cls(
            port_offset=(value >> 16) & 0xFFFF,
            pin=value & 0xFFFF,
            func=PinFunc((value >> _FUNC_SHIFT) & _FUNC_MASK),
            pull=Pull((value >> _PULL_SHIFT) & _PULL_MASK),
            drive=DriveStrength((value >> _DRIVE_SHIFT) & _DRIVE_MASK),
            initial=bool((value >> _INITIAL_SHIFT) & 1),
            open_drain=bool((value >> _OD_SHIFT) & 1),
            alt_func=(value >> _ALTFUNC_SHIFT) & _ALTFUNC_MASK,
        )

    def __int__(self) -> int:
        return self.encode()


TagLike = Union[int, InitTag]


@dataclass
class _PortRegisters:
    moder: int = 0
    otyper: int = 0
    ospeedr: int = 0
    pupdr: int = 0
    odr: int = 0
    idr: int = 0
    afr: list = field(default_factory=lambda: [0, 0])


def _set_field(reg: int, pos: int, width: int, value: int) -> int:
    mask = (1 << width) - 1
    return (reg & ~(mask << (pos * width))) | ((value & mask) << (pos * width))


def _full_value(tag: TagLike) -> int:
    return tag.encode() if isinstance(tag, InitTag) else int(tag)


class GpioBank:
    """GPIO ports held as register values, configured and driven by pin tags.

    Ports are created on first use and kept in :attr:`ports`, keyed by
    port offset.  A null tag is accepted everywhere and does nothing.
    """

    def __init__(self) -> None:
        self.ports: dict[int, _PortRegisters] = {}

    def _resolve(self, tag: TagLike) -> tuple[_PortRegisters, int] | None:
        value = _full_value(tag) & 0xFFFFFFFF
        if value == DIO_NULL:
            return None
        offset, pin = value >> 16, value & 0xFFFF
        port = self.ports.setdefault(offset, _PortRegisters())
        return port, pin

    @staticmethod
    def _pos(pin: int) -> int:
        if pin == 0:
            raise ValueError("tag names no pin")
        return (pin & -pin).bit_length() - 1

    def init(self, tag: TagLike) -> None:
        """Configure a pin as its init tag describes."""
        value = _full_value(tag)
        if value == DIO_NULL:
            return
        cfg = InitTag.decode(value)
        if cfg.func is PinFunc.INPUT:
            self._set_input(value, cfg.pull)
        elif cfg.func is PinFunc.OUTPUT:
            self._set_output(value, cfg.open_drain, cfg.drive, cfg.initial)
        elif cfg.func is PinFunc.ALTFUNC_IN:
            self._set_altfunc_input(value, cfg.alt_func, cfg.pull)
        elif cfg.func is PinFunc.ALTFUNC_OUT:
            self._set_altfunc_output(value, cfg.alt_func, cfg.open_drain, cfg.drive)
        elif cfg.func is PinFunc.ANALOG:
            self._set_analog(value)

    def _set_input(self, tag: int, pull: int) -> None:
        resolved = self._resolve(tag)
        if resolved is None:
            return
        port, pin = resolved
        pos = self._pos(pin)
        port.pupdr = _set_field(port.pupdr, pos, 2, pull)
        port.moder = _set_field(port.moder, pos, 2, STMPIN_INPUT)

    def _set_output(self, tag: int, open_drain: bool, strength: int,
                    first_value: bool) -> None:
        resolved = self._resolve(tag)
        if resolved is None:
            return
        port, pin = resolved
        pos = self._pos(pin)
        self.write(tag, first_value)
        if open_drain:
            port.pupdr = _set_field(port.pupdr, pos, 2, Pull.UP)
            port.otyper = _set_field(port.otyper, pos, 1, 1)
        else:
            port.pupdr = _set_field(port.pupdr, pos, 2, Pull.NONE)
            port.otyper = _set_field(port.otyper, pos, 1, 0)
        port.ospeedr = _set_field(port.ospeedr, pos, 2, strength)
        port.moder = _set_field(port.moder, pos, 2, STMPIN_OUTPUT)

    def _set_alt(self, port: _PortRegisters, pos: int, alt_func: int) -> None:
        if pos >= 8:
            port.afr[1] = _set_field(port.afr[1], pos - 8, 4, alt_func)
        else:
            port.afr[0] = _set_field(port.afr[0], pos, 4, alt_func)
        port.moder = _set_field(port.moder, pos, 2, STMPIN_ALTFUNC)

    def _set_altfunc_output(self, tag: int, alt_func: int, open_drain: bool,
                            strength: int) -> None:
        resolved = self._resolve(tag)
        if resolved is None:
            return
        port, pin = resolved
        self._set_output(tag, open_drain, strength, False)
        self._set_alt(port, self._pos(pin), alt_func)

    def _set_altfunc_input(self, tag: int, alt_func: int, pull: int) -> None:
        self._set_input(tag, pull)
        resolved = self._resolve(tag)
        if resolved is None:
            return
        port, pin = resolved
        self._set_alt(port, self._pos(pin), alt_func)

    def _set_analog(self, tag: int) -> None:
        resolved = self._resolve(tag)
        if resolved is None:
            return
        port, pin = resolved
        pos = self._pos(pin)
        port.pupdr = _set_field(port.pupdr, pos, 2, Pull.NONE)
        port.moder = _set_field(port.moder, pos, 2, STMPIN_ANALOG)

    def high(self, tag: TagLike) -> None:
        """Drive the pin high."""
        resolved = self._resolve(tag)
        if resolved is not None:
            port, pin = resolved
            port.odr |= pin

    def low(self, tag: TagLike) -> None:
        """Drive the pin low."""
        resolved = self._resolve(tag)
        if resolved is not None:
            port, pin = resolved
            port.odr &= ~pin

    def write(self, tag: TagLike, high: bool) -> None:
        """Drive the pin to the given level."""
        if high:
            self.high(tag)
        else:
            self.low(tag)

    def toggle(self, tag: TagLike) -> None:
        """Drive the pin to the opposite of its output level."""
        resolved = self._resolve(tag)
        if resolved is not None:
            port, pin = resolved
            self.write(tag, not (port.odr & pin))

    def read(self, tag: TagLike) -> bool:
        """Level of the pin: the output latch for outputs, else the input register."""
        resolved = self._resolve(tag)
        if resolved is None:
            return False
        port, pin = resolved
        mode = (port.moder >> (self._pos(pin) * 2)) & 3
        source = port.odr if mode == STMPIN_OUTPUT else port.idr
        return bool(source & pin)