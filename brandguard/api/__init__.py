"""
HTTP boundary helpers.
"""

from .responses import STATUS_BY_KIND, render_failure, render_outcome, to_json_value

__all__ = [
    "STATUS_BY_KIND",
    "render_failure",
    "render_outcome",
    "to_json_value",
]
