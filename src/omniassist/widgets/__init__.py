"""Widget exports for the OmniAssist UI."""

from .code_block import CodeBlock
from .conversation import ConversationView
from .input_box import InputBox
from .message import MessageBubble
from .session_list import SessionList

__all__ = ["CodeBlock", "ConversationView", "InputBox", "MessageBubble", "SessionList"]
