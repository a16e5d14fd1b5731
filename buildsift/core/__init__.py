"""buildsift core — line classification, accumulation, progress, hang
detection, resource sampling, rebuild strategy, and the session that
wires them together.
"""
