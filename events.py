# events.py
"""
Post-commit member events.

Adapters (billing, Telegram) subscribe here instead of being called from the
status engine, so the engine stays free of network calls.
"""
from blinker import Namespace

_signals = Namespace()

# sender: the saved User, after its transaction committed
member_saved = _signals.signal("member-saved")

# sender: the User right after its suspension flag was cleared
member_unsuspended = _signals.signal("member-unsuspended")
