"""
Polling configuration for the directory poller.

PollerConfig is immutable once built. PollerConfigBuilder offers a fluent way
to set only the options that differ from the defaults.
"""

from dataclasses import dataclass
from typing import Optional


DEFAULT_POLL_INTERVAL_MILLIS = 1000


@dataclass(frozen=True)
class PollerConfig:
    """
    Immutable description of how a directory is polled.

    Defaults: stop after one cycle, keep processed files, wait 1000 ms
    between cycles, no cycle cap.

    A cycle cap (``max_cycles`` set and greater than zero) takes precedence
    over ``continuous`` when deciding whether to poll again.
    """
    continuous: bool = False
    delete_after_process: bool = False
    poll_interval_millis: int = DEFAULT_POLL_INTERVAL_MILLIS
    max_cycles: Optional[int] = None

    @property
    def poll_interval_seconds(self) -> float:
        """Delay between cycles in seconds, never negative."""
        return max(0, self.poll_interval_millis) / 1000.0

    @property
    def cycle_cap_enabled(self) -> bool:
        return self.max_cycles is not None and self.max_cycles > 0

    @classmethod
    def builder(cls) -> 'PollerConfigBuilder':
        """Start a fluent builder seeded with the defaults."""
        return PollerConfigBuilder()


class PollerConfigBuilder:
    """
    Fluent builder for PollerConfig.

    Values are accepted as-is; callers are responsible for passing sane ones.

    Example:
        config = (PollerConfig.builder()
                  .delete_after_process(True)
                  .poll_interval_millis(0)
                  .max_cycles(3)
                  .build())
    """

    def __init__(self):
        self._continuous = False
        self._delete_after_process = False
        self._poll_interval_millis = DEFAULT_POLL_INTERVAL_MILLIS
        self._max_cycles: Optional[int] = None

    def continuous(self, continuous: bool) -> 'PollerConfigBuilder':
        self._continuous = continuous
        return self

    def delete_after_process(self, delete_after_process: bool) -> 'PollerConfigBuilder':
        self._delete_after_process = delete_after_process
        return self

    def poll_interval_millis(self, poll_interval_millis: int) -> 'PollerConfigBuilder':
        self._poll_interval_millis = poll_interval_millis
        return self

    def max_cycles(self, max_cycles: Optional[int]) -> 'PollerConfigBuilder':
        self._max_cycles = max_cycles
        return self

    def build(self) -> PollerConfig:
        """Return the immutable configuration."""
        return PollerConfig(
            continuous=self._continuous,
            delete_after_process=self._delete_after_process,
            poll_interval_millis=self._poll_interval_millis,
            max_cycles=self._max_cycles
        )
