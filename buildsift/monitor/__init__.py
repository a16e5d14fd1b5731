"""buildsift output layer — renderings of results and live progress.

Modules
-------
formatters
    Plain-text and JSON renderings of ``BuildResult`` at five
    granularities (full, compact, minimal, summary, detailed).
renderer
    ``MonitorRenderer`` turns progress snapshots, hang verdicts, and
    session reports into Rich renderables, including ``Rich.Live`` mode.
"""
