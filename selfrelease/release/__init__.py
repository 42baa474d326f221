"""Release pipeline.

- model / errors: release data and the failure taxonomy
- artifact, changelog, host, notes: the pieces each stage relies on
- pipeline: the generic stage runner
- orchestrator: the ordered release gates
"""

from __future__ import annotations
