# Copyright 2025 John Brosnihan
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
Serialization gate for compiler invocations.

The toolchain shares state between runs (working directory, package cache),
so only one compile may be in flight per process. Every compile runs inside
`SerializationGate.exclusive()`.
"""

import asyncio
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

from compile_runner.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class SerializationGate:
    """
    Process-wide mutual exclusion around the compile step.

    Waiters are woken in arrival order by the underlying asyncio.Lock.
    Release happens when the `async with` block exits, whether it returns,
    raises, or is cancelled.

    Attributes:
        active: Number of holders currently inside the gate (0 or 1)
        peak_active: Highest number of simultaneous holders observed
        acquisitions: Total number of times the gate has been entered
    """

    def __init__(self):
        self._lock = asyncio.Lock()
        self.active = 0
        self.peak_active = 0
        self.acquisitions = 0

    @property
    def busy(self) -> bool:
        """Whether a compile currently holds the gate."""
        return self._lock.locked()

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[None]:
        """
        Hold the gate for the duration of the block.

        Yields:
            None once the gate has been acquired
        """
        started = time.monotonic()
        async with self._lock:
            self.active += 1
            self.acquisitions += 1
            self.peak_active = max(self.peak_active, self.active)
            logger.debug(
                "gate_acquired",
                wait_seconds=round(time.monotonic() - started, 4),
            )
            try:
                yield
            finally:
                self.active -= 1
                logger.debug("gate_released")

    async def with_exclusive_access(self, fn: Callable[[], Awaitable[T]]) -> T:
        """
        Await `fn()` while holding the gate.

        Args:
            fn: Zero-argument coroutine function to run exclusively

        Returns:
            Whatever `fn()` returns
        """
        async with self.exclusive():
            return await fn()


# Global gate instance (created on first use)
_gate: SerializationGate | None = None


def get_gate() -> SerializationGate:
    """Return the process-wide gate, creating it on first use."""
    global _gate
    if _gate is None:
        _gate = SerializationGate()
    return _gate


def reset_gate() -> SerializationGate:
    """
    Replace the process-wide gate with a fresh one.

    Useful for testing, since an asyncio.Lock belongs to the event loop it
    first waited on.
    """
    global _gate
    _gate = SerializationGate()
    return _gate
