"""Time doubles shared by the retry and polling tests."""


class SleepRecorder:
    """Stand-in for asyncio.sleep that records delays instead of waiting."""

    def __init__(self, clock=None):
        self.delays = []
        self._clock = clock

    async def __call__(self, delay):
        self.delays.append(delay)
        if self._clock is not None:
            self._clock.advance(delay)


class FakeClock:
    def __init__(self, start=0.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds
