"""Streaming text assistant over a Gemini chat session."""
import logging
from dataclasses import dataclass
from typing import Iterator, Optional

from google.genai import types

from rightstudy.config import Settings, get_client
from rightstudy.models import Course
from rightstudy.prompts import (
    COURSE_APOLOGY, COURSE_GREETING, GENERAL_APOLOGY, GENERAL_ASSISTANT, GENERAL_GREETING,
    course_tutor_prompt,
)

logger = logging.getLogger(__name__)


class ChatBusyError(RuntimeError):
    """Raised when a message is sent while the previous reply is still streaming."""


@dataclass
class ChatTurn:
    role: str  # "user" | "model"
    text: str


class ChatAssistant:
    """One conversation with a fixed system instruction.

    ``messages`` is the display list: it opens with a greeting, gets the user's
    text appended on send, and the model's reply grows token by token in the
    last entry while the stream is read.
    """

    def __init__(self, system_instruction: str, greeting: str, apology: str,
                 settings: Optional[Settings] = None, client=None):
        self.system_instruction = system_instruction
        self.apology = apology
        self.settings = settings or Settings()
        self.messages: list[ChatTurn] = [ChatTurn("model", greeting)]
        self.is_loading = False
        self._client = client
        self._chat = None

    @property
    def available(self) -> bool:
        return self._client is not None or self.settings.ai_enabled

    def _session(self):
        if self._chat is None:
            if self._client is None:
                self._client = get_client(self.settings)
            self._chat = self._client.chats.create(
                model=self.settings.chat_model,
                config=types.GenerateContentConfig(system_instruction=self.system_instruction),
            )
        return self._chat

    def send(self, text: str) -> Iterator[str]:
        """Send ``text`` and yield reply tokens as they arrive.

        A failure at any point ends the reply with the apology message.
        """
        if self.is_loading:
            raise ChatBusyError("A reply is still streaming")
        if not text.strip():
            return
        if not self.available:
            logger.warning("No API key configured; chat message not sent")
            return

        self.messages.append(ChatTurn("user", text))
        self.is_loading = True
        try:
            stream = self._session().send_message_stream(text)
            reply = ChatTurn("model", "")
            self.messages.append(reply)
            for chunk in stream:
                token = chunk.text
                if token:
                    reply.text += token
                    yield token
        except Exception:
            logger.exception("Chat error")
            self.messages.append(ChatTurn("model", self.apology))
        finally:
            self.is_loading = False

    def ask(self, text: str) -> str:
        """Send ``text`` and return the final text of the last message."""
        for _ in self.send(text):
            pass
        return self.messages[-1].text


def general_assistant(settings: Optional[Settings] = None, client=None) -> ChatAssistant:
    return ChatAssistant(GENERAL_ASSISTANT, GENERAL_GREETING, GENERAL_APOLOGY, settings, client)


def course_tutor(course: Course, settings: Optional[Settings] = None, client=None) -> ChatAssistant:
    return ChatAssistant(course_tutor_prompt(course), COURSE_GREETING, COURSE_APOLOGY, settings, client)
