from .scheduler import DispatchScheduler
from .reassembler import StreamReassembler
from .connections import ConnectionManager, build_chat_url

__all__ = ["ConnectionManager", "DispatchScheduler", "StreamReassembler", "build_chat_url"]
