"""Host platform facts the library needs."""

import os


class Platform:
    """Reports the host path convention.

    Hey future me - pass ``force_windows`` in tests to exercise the backslash
    normalization on a Linux CI box. None means "ask the OS".
    """

    def __init__(self, force_windows: bool | None = None) -> None:
        self._force_windows = force_windows

    def is_windows(self) -> bool:
        if self._force_windows is not None:
            return self._force_windows
        return os.name == "nt"
