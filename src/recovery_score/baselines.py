"""Personal baseline calculations for readiness scoring.

Today's readings are only meaningful relative to *your* recent normal:
"your HRV vs your 7-day average, not a population norm".

Key concepts:
- Trailing-window averages for each biometric, fetched concurrently
- A three-tier policy for heart-rate recovery, which many devices never
  report directly
- Documented physiological defaults when history is too short
"""

import asyncio
import logging
from typing import Awaitable, List, Optional, Tuple

from .exceptions import ProviderError, SampleUnavailableError
from .models import BaselineData, Metric
from .providers import SampleProvider, latest_hr_recovery, workout_hrr

logger = logging.getLogger(__name__)

# Fallbacks used when the trailing window holds no samples.
DEFAULT_HRV = 50.0  # ms
DEFAULT_RHR = 65.0  # bpm
DEFAULT_HRR = 25.0  # bpm
DEFAULT_RESPIRATORY_RATE = 16.0  # breaths/min
DEFAULT_WRIST_TEMP = 36.5  # °C


def calculate_average(values: List[Optional[float]]) -> Optional[float]:
    """Arithmetic mean of the non-missing values.

    Args:
        values: Raw values from the trailing window (may contain None)

    Returns:
        Mean, or None when nothing is left to average
    """
    valid_values = [v for v in values if v is not None]
    if not valid_values:
        return None
    return sum(valid_values) / len(valid_values)


class BaselineCalculator:
    """Computes personal baselines from a trailing window of samples.

    Missing history never raises: each metric independently falls back to
    its documented default, and the pass completes once every fetch has
    resolved, failed or timed out.
    """

    def __init__(
        self,
        provider: SampleProvider,
        window_days: int = 7,
        timeout_seconds: Optional[float] = 10.0,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._provider = provider
        self._window_days = window_days
        self._timeout = timeout_seconds
        self._logger = logger or logging.getLogger(__name__)

    async def calculate_baseline(self) -> BaselineData:
        """Calculate all biometric baselines concurrently.

        Weekly training load is not a biometric average and is left at 0;
        see ``weekly_load.weekly_load_baseline``.
        """
        hrv, rhr, hrr, resp, temp, energy = await asyncio.gather(
            self._bounded("HRV", self.fetch_average(Metric.HRV)),
            self._bounded("Resting HR", self.fetch_average(Metric.RESTING_HR)),
            self._bounded("HR Recovery", self.fetch_average_hrr()),
            self._bounded("Respiratory Rate", self.fetch_average(Metric.RESPIRATORY_RATE)),
            self._bounded("Wrist Temperature", self.fetch_average(Metric.WRIST_TEMPERATURE)),
            self._bounded("Active Energy", self.fetch_average(Metric.ACTIVE_ENERGY)),
        )

        resolved: List[Tuple[str, Optional[float], float]] = [
            ("hrv", hrv, DEFAULT_HRV),
            ("rhr", rhr, DEFAULT_RHR),
            ("hrr", hrr, DEFAULT_HRR),
            ("respiratory_rate", resp, DEFAULT_RESPIRATORY_RATE),
            ("wrist_temp", temp, DEFAULT_WRIST_TEMP),
        ]
        for name, value, default in resolved:
            if value is None:
                self._logger.debug(f"Insufficient {name} history, using default {default}")

        baseline = BaselineData(
            average_hrv=hrv if hrv is not None else DEFAULT_HRV,
            average_rhr=rhr if rhr is not None else DEFAULT_RHR,
            average_hrr=hrr if hrr is not None else DEFAULT_HRR,
            average_respiratory_rate=resp if resp is not None else DEFAULT_RESPIRATORY_RATE,
            average_wrist_temp=temp if temp is not None else DEFAULT_WRIST_TEMP,
            average_active_energy=energy if energy is not None else 0.0,
            average_weekly_load=0.0,
        )
        self._logger.debug(f"Baseline calculation completed: {baseline.to_dict()}")
        return baseline

    async def fetch_average(self, metric: Metric) -> Optional[float]:
        """Mean of a metric over the trailing window, or None if empty."""
        values = await self._provider.windowed_values(metric, self._window_days)
        return calculate_average(values)

    async def fetch_average_hrr(self) -> Optional[float]:
        """Heart-rate recovery baseline, first tier that yields a value wins.

        1. Native one-minute HRR samples in the trailing window
        2. HRR derived around the end of each workout in the window
        3. The latest HRR reading or derivation, regardless of age
        """
        native = await self.fetch_average(Metric.HR_RECOVERY)
        if native is not None:
            return native

        workouts = await self._provider.recent_workouts(self._window_days)
        derived = []
        for workout in workouts:
            value = await workout_hrr(self._provider, workout.end)
            if value is not None:
                derived.append(value)
        if derived:
            return calculate_average(derived)

        try:
            latest = await latest_hr_recovery(self._provider)
        except SampleUnavailableError:
            return None
        return latest.value if latest.value > 0 else None

    async def _bounded(self, name: str, fetch: Awaitable[Optional[float]]) -> Optional[float]:
        """Await one baseline fetch, mapping failures to "no data"."""
        try:
            return await asyncio.wait_for(fetch, timeout=self._timeout)
        except asyncio.TimeoutError:
            self._logger.warning(f"{name} baseline fetch timed out after {self._timeout}s")
        except (SampleUnavailableError, ProviderError) as e:
            self._logger.warning(f"{name} baseline unavailable: {e.message}")
        return None
