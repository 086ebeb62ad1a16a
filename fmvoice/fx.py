"""Output stage of the synth: DC blocker, gain and a resonant 4-pole low-pass filter."""

from __future__ import annotations

import math
from collections.abc import Iterable

_DENORMAL_GUARD = 1e-18


def _one_pole(state: float, sample: float, cutoff: float) -> tuple[float, float]:
    """Trapezoidal one-pole low-pass step; returns (output, new state)."""
    v = (sample - state) * cutoff / (1 + cutoff)
    out = v + state
    return out, out + v


def _log_scale(param: float, minimum: float, maximum: float, rolloff: float = 19.0) -> float:
    """Map 0..1 onto minimum..maximum along an exponential curve."""
    return ((math.exp(param * math.log(rolloff + 1)) - 1.0) / rolloff) * (
        maximum - minimum
    ) + minimum


class FilterFx:
    """DC filter, output gain and a resonant low-pass filter with saturation.

    ``ui_cutoff``, ``ui_reso`` and ``ui_gain`` are the user-facing values in
    0.0..1.0 (gain may go above 1.0). The filter is bypassed when the cutoff
    is at its maximum of 1.0. ``init`` must be called before ``process``.
    """

    def __init__(self) -> None:
        self.ui_cutoff = 1.0
        self.ui_reso = 0.0
        self.ui_gain = 1.0
        self._ready = False

    def init(self, sample_rate: float) -> None:
        """Reset every filter state for ``sample_rate`` samples per second."""
        if sample_rate <= 0:
            raise ValueError(f"sample rate must be positive, got {sample_rate}")
        self._s1 = self._s2 = self._s3 = self._s4 = 0.0
        self._c = self._d = 0.0
        self._r24 = 0.0

        self._mm = 0.0
        self._mm_choice = int(self._mm * 3)
        self._mm_mix = self._mm * 3 - self._mm_choice

        self.sample_rate = float(sample_rate)
        self._sr_inv = 1 / self.sample_rate
        rc_rate = math.sqrt(44000 / self.sample_rate)
        self._rcor24 = (970.0 / 44000) * rc_rate
        self._rcor24_inv = 1 / self._rcor24
        self._bright = math.tan((self.sample_rate * 0.5 - 10) * math.pi * self._sr_inv)

        self._p_cutoff = -1.0
        self._p_reso = -1.0
        self._r_cutoff = 0.0
        self._r_reso = 0.0

        self._dc_r = 1.0 - (126.0 / self.sample_rate)
        self._dc_in = 0.0
        self._dc_out = 0.0
        self._ready = True

    def _nr24(self, sample: float, g: float, lpc: float) -> float:
        ml = 1 / (1 + g)
        s = (lpc * (lpc * (lpc * self._s1 + self._s2) + self._s3) + self._s4) * ml
        big_g = lpc * lpc * lpc * lpc
        y = (sample - self._r24 * s) / (1 + self._r24 * big_g)
        return y + 1e-8

    def process(self, samples: Iterable[float]) -> list[float]:
        """Filter a block of samples and return the processed block."""
        if not self._ready:
            raise RuntimeError("init() must be called before process()")
        work = [float(x) for x in samples]
        if not work:
            return []

        prev_in, prev_out = self._dc_in, self._dc_out
        filtered = []
        for x in work:
            y = x - prev_in + self._dc_r * prev_out
            prev_in, prev_out = x, y
            filtered.append(y)
        self._dc_in, self._dc_out = prev_in, prev_out
        work = filtered

        if self.ui_gain != 1:
            work = [x * self.ui_gain for x in work]

        if self.ui_cutoff == 1:
            return work

        if self.ui_cutoff != self._p_cutoff or self.ui_reso != self._p_reso:
            self._r_reso = 0.991 - _log_scale(1 - self.ui_reso, 0, 0.991)
            self._r24 = 3.5 * self._r_reso
            cutoff_norm = _log_scale(self.ui_cutoff, 60, 19000)
            self._r_cutoff = math.tan(cutoff_norm * self._sr_inv * math.pi)
            self._p_cutoff = self.ui_cutoff
            self._p_reso = self.ui_reso

        g = self._r_cutoff
        lpc = g / (1 + g)
        highpass_cutoff = 15 * self._sr_inv * math.pi
        compensation = 1 + self._r24 * 0.45

        out = []
        for s in work:
            low, self._c = _one_pole(self._c, s, highpass_cutoff)
            s = s - 0.45 * low
            s, self._d = _one_pole(self._d, s, self._bright)

            y0 = self._nr24(s, g, lpc)

            v = (y0 - self._s1) * lpc
            res = v + self._s1
            self._s1 = res + v
            self._s1 = math.atan(self._s1 * self._rcor24) * self._rcor24_inv

            y1 = res
            y2, self._s2 = _one_pole(self._s2, y1, g)
            y3, self._s3 = _one_pole(self._s3, y2, g)
            y4, self._s4 = _one_pole(self._s4, y3, g)

            mix = self._mm_mix
            if self._mm_choice == 0:
                mc = (1 - mix) * y4 + mix * y3
            elif self._mm_choice == 1:
                mc = (1 - mix) * y3 + mix * y2
            elif self._mm_choice == 2:
                mc = (1 - mix) * y2 + mix * y1
            else:
                mc = y1
            out.append(mc * compensation)
        return out