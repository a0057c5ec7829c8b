from .replay import ArchivedMatch, ReplayAction, ReplayArchive, ReplayHarness

__all__ = ["ArchivedMatch", "ReplayAction", "ReplayArchive", "ReplayHarness"]
