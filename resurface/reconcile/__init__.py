"""Comment reconciliation: contigs, batching, merging and context expansion."""

from resurface.reconcile.batcher import ChunkedBatcher
from resurface.reconcile.context import ContextExpander
from resurface.reconcile.contigs import EARLIEST, ContigTracker
from resurface.reconcile.engine import FillResult, InconsistentLinkError, ReconciliationEngine
from resurface.reconcile.events import LoadObserver, LoggingObserver, RecordingObserver
from resurface.reconcile.pending import LoadSession, PendingSet
from resurface.reconcile.store import CommentStore

__all__ = [
    "EARLIEST",
    "ChunkedBatcher",
    "CommentStore",
    "ContextExpander",
    "ContigTracker",
    "FillResult",
    "InconsistentLinkError",
    "LoadObserver",
    "LoadSession",
    "LoggingObserver",
    "PendingSet",
    "RecordingObserver",
    "ReconciliationEngine",
]
