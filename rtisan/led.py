"""Indicator LEDs driven through GPIO pins."""

from __future__ import annotations

from typing import Iterable

from rtisan.dio import GpioBank, InitTag, TagLike


class LedBank:
    """A numbered set of LEDs.

    An LED whose init tag starts it high is taken to be active low, so
    lighting it drives the pin low.  Out-of-range indexes are ignored.
    """

    def __init__(self, leds: Iterable[TagLike], gpio: GpioBank | None = None) -> None:
        self.gpio = gpio if gpio is not None else GpioBank()
        self._leds = [led.encode() if isinstance(led, InitTag) else int(led)
                      for led in leds]
        for led in self._leds:
            self.gpio.init(led)

    def __len__(self) -> int:
        return len(self._leds)

    def _lookup(self, index: int) -> int | None:
        if 0 <= index < len(self._leds):
            return self._leds[index]
        return None

    def set(self, index: int, lit: bool) -> None:
        """Turn LED ``index`` on or off."""
        led = self._lookup(index)
        if led is None:
            return
        if InitTag.decode(led).initial:
            self.gpio.write(led, not lit)
        else:
            self.gpio.write(led, lit)

    def toggle(self, index: int) -> None:
        """Flip LED ``index``."""
        led = self._lookup(index)
        if led is not None:
            self.gpio.toggle(led)