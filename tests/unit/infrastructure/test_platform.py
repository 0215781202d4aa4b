"""Tests for Platform."""

import os
from unittest.mock import patch

from localshelf.infrastructure.platform import Platform


class TestPlatform:
    """Test Platform.is_windows()."""

    def test_forced_values_win(self):
        assert Platform(force_windows=True).is_windows() is True
        assert Platform(force_windows=False).is_windows() is False

    def test_detects_from_os_name(self):
        with patch.object(os, "name", "nt"):
            assert Platform().is_windows() is True
        with patch.object(os, "name", "posix"):
            assert Platform().is_windows() is False
