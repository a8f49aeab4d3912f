"""streamtrace — lifecycle tracing and visualization for reactive pipelines.

Records what every stage of a push-based stream pipeline does (creation,
subscribe, next, error, complete, unsubscribe), writes it to an append-only
log, and turns that log back into operator trees, summaries, marble
diagrams and compact timelines.

Quick start::

    import streamtrace

    tracer = streamtrace.Tracer(streamtrace.TraceConfig())
    tracer.install()
    # ... instrumented pipeline calls tracer.subscribe()/next()/complete() ...

    result = streamtrace.read_events(Path("streamtrace.ndjson"))
    print("\\n".join(streamtrace.render_timeline(result.events)))

Layers::

    events      Event model, codec, in-memory log
    instrument  Identities, event bus, tracer, file sink
    analysis    Run grouping, operator graph, summaries
    render      Marble, timeline, tree, report, Mermaid views

"""

# PEP 703: Declare this module as free-threading safe
_Py_mod_gil = 0

__version__ = "0.1.0-dev"
__all__ = [
    "EventBus",
    "EventLog",
    "TraceConfig",
    "Tracer",
    "__version__",
    "build_graph",
    "group_runs",
    "load_config",
    "load_events",
    "read_events",
    "render_marble",
    "render_timeline",
    "render_tree",
    "select_run",
    "summarize",
]

# Public name -> defining module, resolved on first access.
_LAZY: dict[str, str] = {
    "EventBus": "streamtrace.instrument.bus",
    "EventLog": "streamtrace.events.log",
    "TraceConfig": "streamtrace.config",
    "Tracer": "streamtrace.instrument.tracer",
    "build_graph": "streamtrace.analysis.graph",
    "group_runs": "streamtrace.analysis.runs",
    "load_config": "streamtrace.config_loader",
    "load_events": "streamtrace.events.codec",
    "read_events": "streamtrace.events.codec",
    "render_marble": "streamtrace.render.marble",
    "render_timeline": "streamtrace.render.timeline",
    "render_tree": "streamtrace.render.tree",
    "select_run": "streamtrace.analysis.runs",
    "summarize": "streamtrace.analysis.summary",
}


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import streamtrace`` fast (instrumented code imports it early)
    while providing a clean top-level API.
    """
    module_name = _LAZY.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    import importlib

    return getattr(importlib.import_module(module_name), name)
