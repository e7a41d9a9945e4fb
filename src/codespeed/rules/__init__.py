"""Line-based performance rules.

Rules are deterministic text scanners over a single document. They track loop
nesting by indentation and list/tuple literal bindings, and produce findings
with a self-assessed confidence that gates the LLM review stage.
"""

from .perf import run_rules

__all__ = ["run_rules"]
