from .errors import ChatDomainError, ChatNotFoundError, CompletionError, MessageNotFoundError
from .payload import (
    ChatPayload,
    ImageBlock,
    PayloadMessage,
    TextBlock,
    assemble_chat_payload,
    select_model,
)
from .repo import (
    add_message,
    create_chat,
    delete_chat,
    ensure_chat,
    get_chat_messages,
    get_recent_messages,
    list_chats,
    rename_chat,
    replace_message_attachments,
    set_chat_archived,
)
from .service import SendMessageResult, reprocess_message_attachments, send_message
from .types import CompletionResult, HistoryMessage

__all__ = [
    "ChatDomainError",
    "ChatNotFoundError",
    "ChatPayload",
    "CompletionError",
    "CompletionResult",
    "HistoryMessage",
    "ImageBlock",
    "MessageNotFoundError",
    "PayloadMessage",
    "SendMessageResult",
    "TextBlock",
    "add_message",
    "assemble_chat_payload",
    "create_chat",
    "delete_chat",
    "ensure_chat",
    "get_chat_messages",
    "get_recent_messages",
    "list_chats",
    "rename_chat",
    "replace_message_attachments",
    "reprocess_message_attachments",
    "select_model",
    "send_message",
    "set_chat_archived",
]
