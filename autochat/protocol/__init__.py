from .frames import encode_frame, build_chat_message, generate_message_id, parse_inbound_frame

__all__ = ["build_chat_message", "encode_frame", "generate_message_id", "parse_inbound_frame"]
