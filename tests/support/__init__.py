from .fakes import FakeConnector, FakeWebSocket, wait_until, make_settings, agent_frame, agent_batch

__all__ = ["FakeConnector", "FakeWebSocket", "agent_batch", "agent_frame", "make_settings", "wait_until"]
