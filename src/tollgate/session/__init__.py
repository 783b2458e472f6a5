"""
Session state for Tollgate.

Keeps cross-call state (research done, active task, turn counters) in a
single dated record on disk.
"""

from tollgate.session.record import SessionRecord
from tollgate.session.store import SessionStore, default_state_dir

__all__ = ["SessionRecord", "SessionStore", "default_state_dir"]
