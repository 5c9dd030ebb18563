"""Mirror operations across a source and destination tree.

Architecture:
    MirrorRunner → MirrorPlanner → DirectoryNode / CopyEngine

Components:
- **MirrorRunner**: Scans both trees, then drives planning and copying
- **MirrorPlanner**: Tagging, filtering, per-entry copy decisions, cleanup
- **MirrorTotals**: Counters owned by the caller of a run
"""

from dirmirror.mirror.planner import (
    ActionCallback,
    MirrorPlanner,
    PhaseProgressCallback,
)
from dirmirror.mirror.runner import MirrorRunner, dump_tree
from dirmirror.mirror.totals import MirrorResult, MirrorTotals

__all__ = [
    "ActionCallback",
    "MirrorPlanner",
    "MirrorResult",
    "MirrorRunner",
    "MirrorTotals",
    "PhaseProgressCallback",
    "dump_tree",
]
