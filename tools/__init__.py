"""Entry, listing and charting helpers for the symptom tracker."""

__all__ = ["tool_get_entries", "build_time_series"]


def tool_get_entries(*args, **kwargs):
    from .get_entries import tool_get_entries as _impl
    return _impl(*args, **kwargs)


def build_time_series(*args, **kwargs):
    from .time_series import build as _impl
    return _impl(*args, **kwargs)
