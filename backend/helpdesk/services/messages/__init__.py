"""
Messages - threaded replies on tickets, internal or external.
"""

from .queries import list_messages, load_message, serialize_message
from .commands import add_message, mark_thread_read, sender_role_for

__all__ = [
    'list_messages',
    'load_message',
    'serialize_message',
    'add_message',
    'mark_thread_read',
    'sender_role_for',
]
