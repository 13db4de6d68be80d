"""
Preprocessing: locations, the unified catalog, the run orchestrator and
its integrity check.

Import the submodules directly; the mappers depend on ``catalog``.
"""
