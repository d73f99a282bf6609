from .engine import EngineState, ExpansionEngine
from .fetch import Fetcher, HttpFetcher, RetryPolicy
from .launch import renderLaunchScript
from .report import EntryFailure, ExpansionReport
from .unpack import MANIFEST_RENDERING, peek, unpack

__all__ = [
    "EngineState",
    "ExpansionEngine",
    "Fetcher",
    "HttpFetcher",
    "RetryPolicy",
    "renderLaunchScript",
    "EntryFailure",
    "ExpansionReport",
    "MANIFEST_RENDERING",
    "peek",
    "unpack",
]
