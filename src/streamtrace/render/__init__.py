"""Text renderers — marble strings, timelines, trees, reports, Mermaid.

Renderers are pure functions of an event sequence (or a ``Forest``) and
return lines; printing is left to the caller.
"""

from streamtrace.render.flat import render_flat, render_runs_flat
from streamtrace.render.marble import render_marble, render_marbles
from streamtrace.render.mermaid import render_flowchart
from streamtrace.render.report import render_report, render_runs_report
from streamtrace.render.timeline import quantize, render_timeline, render_timeline_mermaid
from streamtrace.render.tree import render_tree

__all__ = [
    "quantize",
    "render_flat",
    "render_flowchart",
    "render_marble",
    "render_marbles",
    "render_report",
    "render_runs_flat",
    "render_runs_report",
    "render_timeline",
    "render_timeline_mermaid",
    "render_tree",
]
