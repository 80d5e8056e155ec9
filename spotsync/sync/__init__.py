"""
Synchronization engine
Rename index, metadata cache, planning, bounded post-processing and reporting
"""

from .cache import CacheEntry, CacheKey, MetadataCache
from .index import IndexMatch, RenameIndex
from .pipeline import PipelineResult, PostProcessPipeline, Stage
from .planner import PlanSummary, SyncOptions, SyncPlanner, WorkingSet
from .playlists import PlaylistExporter
from .pool import ProcessingPool
from .report import FailureList, SyncReport
from .synchronizer import SyncRequest, Synchronizer

__all__ = [
    'CacheEntry',
    'CacheKey',
    'MetadataCache',
    'IndexMatch',
    'RenameIndex',
    'PipelineResult',
    'PostProcessPipeline',
    'Stage',
    'PlanSummary',
    'SyncOptions',
    'SyncPlanner',
    'WorkingSet',
    'PlaylistExporter',
    'ProcessingPool',
    'FailureList',
    'SyncReport',
    'SyncRequest',
    'Synchronizer',
]
