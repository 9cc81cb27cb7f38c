from .executors import run_sync

__all__ = ["run_sync"]
