from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from chat.core import markup
from chat.core.sessions import SessionStore
from chat.core.state import ROLE_BOT, ROLE_USER, Message, utc_now
from chat.errors import ConversationBusy, ProviderError, SessionNotFound
from chat.llm.providers import AnswerProvider

logger = logging.getLogger(__name__)

ERROR_NOTICE = (
    "Sorry, I encountered an error while generating a response. "
    "Please check your internet connection and try again."
)


@dataclass(frozen=True)
class Turn:
    """Messages appended by one submit. `bot` is None if the session was deleted mid-answer."""

    session_id: str
    user: Message
    bot: Optional[Message]


class ConversationController:
    """Drives one user turn: store the question, ask the provider, store the answer.

    Only one submit may be in flight at a time. The answer is always appended to
    the session that was active when the question was submitted, even if the
    user switches or creates sessions while waiting.
    """

    def __init__(self, store: SessionStore, provider: AnswerProvider) -> None:
        self.store = store
        self.provider = provider
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    async def submit(self, utterance: str) -> Optional[Turn]:
        text = (utterance or "").strip()
        if not text:
            return None
        if self._busy:
            raise ConversationBusy("An answer is still being generated")

        self._busy = True
        try:
            sid = self.store.active_id or self.store.create_session()
            user_msg = self.store.append_message(sid, Message(role=ROLE_USER, content=text, timestamp=utc_now()))

            try:
                answer = await self.provider.get_answer(text)
                if not isinstance(answer, str):
                    raise ProviderError(f"Answer provider returned {type(answer).__name__}, expected str")
                bot_msg = Message(role=ROLE_BOT, content=answer, timestamp=utc_now())
            except asyncio.CancelledError:
                # A cancelled turn still ends with an error reply
                logger.warning("Answer cancelled (session=%s)", sid)
                try:
                    self.store.append_message(
                        sid, Message(role=ROLE_BOT, content=ERROR_NOTICE, timestamp=utc_now(), is_error=True)
                    )
                except SessionNotFound:
                    logger.warning("Session %s was deleted before its answer was cancelled", sid)
                raise
            except Exception:
                logger.exception("Error generating answer (session=%s)", sid)
                bot_msg = Message(role=ROLE_BOT, content=ERROR_NOTICE, timestamp=utc_now(), is_error=True)

            try:
                self.store.append_message(sid, bot_msg)
            except SessionNotFound:
                logger.warning("Session %s was deleted before its answer arrived; answer dropped", sid)
                return Turn(session_id=sid, user=user_msg, bot=None)
            return Turn(session_id=sid, user=user_msg, bot=bot_msg)
        finally:
            self._busy = False

    def display(self, message: Message) -> str:
        """HTML for a message: bot answers go through the markup renderer, user text is only escaped."""
        if message.role == ROLE_BOT:
            return markup.render(message.content)
        return markup.escape_html(message.content)
