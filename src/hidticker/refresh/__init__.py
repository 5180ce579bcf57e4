"""Refresh loop orchestration for hidticker."""

from hidticker.refresh.loop import RefreshLoop

__all__ = ["RefreshLoop"]
