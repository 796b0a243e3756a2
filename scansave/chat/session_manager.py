"""
Chat Session Manager

Owns the chat sessions, the active session and the assistant context.

SESSION LIFECYCLE:
    UNINITIALIZED -> GREETING_PENDING -> READY

- UNINITIALIZED: the manager has not built a context yet
- GREETING_PENDING: the session has no messages
- READY: the session holds at least the greeting

DESIGN DECISIONS:
1. Sessions are replaced, never mutated. A reader holding a session from
   `sessions` or `active_session` keeps a consistent snapshot.
2. Every mutation is persisted through the SessionStoreInterface.
3. One send in flight per manager. A second send is a no-op (None).
4. Replies are routed by the session id captured when the send started.
   If that session is gone by the time the reply arrives, the reply is
   dropped and logged.
5. Context is rebuilt explicitly via refresh_context(); the orchestrator
   calls it after ledger and language changes.
"""

from enum import Enum
from typing import Optional

from scansave.agents import ChatAgent, ChatError, EnrichmentError
from scansave.audit import AuditLogger
from scansave.chat.context import build_context, format_reply
from scansave.guards import InFlightGuard
from scansave.i18n import Translator
from scansave.ledger import ReceiptLedger
from scansave.models.chat import ChatContext, ChatMessage, ChatSession
from scansave.services.storage import (
    NotFoundError,
    PersistenceError,
    SessionStoreInterface,
)


SEND_RESOURCE = "chat-send"


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    GREETING_PENDING = "greeting_pending"
    READY = "ready"


class ChatSessionManager:
    """
    Conversation state for the assistant.

    Usage:
        manager = ChatSessionManager(store, agent, ledger)
        manager.initialize()
        reply = await manager.send_message("How much did I spend on food?")
    """

    def __init__(
        self,
        store: SessionStoreInterface,
        agent: ChatAgent,
        ledger: ReceiptLedger,
        translator: Optional[Translator] = None,
        audit_logger: Optional[AuditLogger] = None,
        language: str = "en",
    ):
        self._store = store
        self._agent = agent
        self._ledger = ledger
        self._translator = translator or Translator()
        self._audit = audit_logger or AuditLogger()
        self._language = self._translator.normalize_language(language)

        self._sessions: list[ChatSession] = []
        self._active_id: Optional[str] = None
        self._context: Optional[ChatContext] = None
        self._guard = InFlightGuard()
        self._grounding_notice = False

    # =========================================================================
    # READS
    # =========================================================================

    @property
    def sessions(self) -> tuple[ChatSession, ...]:
        """All sessions, most recent first."""
        return tuple(self._sessions)

    @property
    def active_session(self) -> Optional[ChatSession]:
        return self._find(self._active_id)

    @property
    def context(self) -> Optional[ChatContext]:
        return self._context

    @property
    def language(self) -> str:
        return self._language

    @property
    def is_sending(self) -> bool:
        return self._guard.is_held(SEND_RESOURCE)

    def session_state(self, session_id: str) -> SessionState:
        """
        Raises:
            NotFoundError: If no session has this id
        """
        session = self._find(session_id)
        if session is None:
            raise NotFoundError(f"Chat session {session_id} not found")
        if self._context is None:
            return SessionState.UNINITIALIZED
        if not session.messages:
            return SessionState.GREETING_PENDING
        return SessionState.READY

    def consume_grounding_notice(self) -> Optional[str]:
        """Localized notice after a grounded reply; returned once, then cleared."""
        if not self._grounding_notice:
            return None
        self._grounding_notice = False
        return self._translator.t("chatbot.groundingNotice", self._language)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def initialize(self) -> None:
        """
        Load persisted sessions and pick the active one.

        Corrupt snapshots are logged and treated as empty. With no sessions
        at all, one fresh session is created.
        """
        try:
            self._sessions = list(self._store.load_sessions())
        except PersistenceError as e:
            self._audit.log_snapshot_corrupt(e.key, str(e))
            self._sessions = []

        try:
            active_id = self._store.load_active_session_id()
        except PersistenceError as e:
            self._audit.log_snapshot_corrupt(e.key, str(e))
            active_id = None

        if not self._sessions:
            self.new_session()
            return

        if self._find(active_id) is None:
            active_id = self._sessions[0].id
        self._active_id = active_id
        self._store.save_active_session_id(active_id)
        self.refresh_context()

    def refresh_context(self) -> ChatContext:
        """
        Rebuild the assistant context and greet an empty active session.
        """
        self._context = build_context(
            self._ledger.snapshot(),
            self._language,
            grounding_enabled=self._agent.grounding_available,
            session_id=self._active_id,
        )

        session = self.active_session
        if session is not None and not session.messages:
            key = "chatbot.greetingWithData" if len(self._ledger) else "chatbot.greetingWithoutData"
            greeting = ChatMessage.model(self._translator.t(key, self._language))
            self._replace(session.id, messages=[greeting])
        return self._context

    def set_language(self, language: str) -> None:
        self._language = self._translator.normalize_language(language)
        self.refresh_context()

    # =========================================================================
    # SESSIONS
    # =========================================================================

    def new_session(self) -> ChatSession:
        """Create an empty session, make it active and greet it."""
        session = ChatSession()
        self._sessions.insert(0, session)
        self._active_id = session.id
        self._persist()
        self._audit.log_chat_session_created(session.id)
        self.refresh_context()
        return self._find(session.id)

    def select_session(self, session_id: str) -> ChatSession:
        """
        Raises:
            NotFoundError: If no session has this id
        """
        if self._find(session_id) is None:
            raise NotFoundError(f"Chat session {session_id} not found")
        self._active_id = session_id
        self._store.save_active_session_id(session_id)
        self.refresh_context()
        return self._find(session_id)

    def delete_session(self, session_id: str) -> bool:
        """
        Remove a session. Deleting the active session promotes the most
        recent remaining one, or creates a fresh session if none remain.
        """
        if self._find(session_id) is None:
            return False

        self._sessions = [s for s in self._sessions if s.id != session_id]
        promoted_id = None

        if self._active_id == session_id:
            if self._sessions:
                promoted_id = self._sessions[0].id
                self._active_id = promoted_id
                self._persist()
                self.refresh_context()
            else:
                self._active_id = None
                self._persist()
                promoted_id = self.new_session().id
        else:
            self._store.save_sessions(self._sessions)

        self._audit.log_chat_session_deleted(session_id, promoted_id)
        return True

    # =========================================================================
    # MESSAGES
    # =========================================================================

    async def send_message(self, text: str) -> Optional[ChatMessage]:
        """
        Send a user message in the active session.

        Returns the model message appended to the conversation (the reply,
        or the localized error message), or None when nothing was sent or
        the reply was dropped.
        """
        text = (text or "").strip()
        session = self.active_session
        if not text or session is None or not self._guard.try_acquire(SEND_RESOURCE):
            return None

        try:
            if self._context is None:
                self.refresh_context()
                session = self.active_session
            session_id = session.id
            context = self._context
            history = list(session.messages)

            self._replace(session_id, messages=history + [ChatMessage.user(text)])

            succeeded = True
            try:
                reply = await self._agent.send(
                    text,
                    history,
                    context.system_instruction,
                    grounding=context.grounding_enabled,
                )
                message = ChatMessage.model(format_reply(reply, self._translator, context.language))
                grounded = bool(reply.sources)
            except ChatError as e:
                self._audit.log_chat_message_failed(session_id, str(e))
                message = ChatMessage.model(self._translator.t("chatbot.error", context.language))
                succeeded = False
                grounded = False

            current = self._find(session_id)
            if current is None:
                self._audit.log_chat_reply_dropped(session_id)
                return None

            self._replace(session_id, messages=list(current.messages) + [message])
            if grounded:
                self._grounding_notice = True

            if succeeded:
                await self._infer_title(session_id, context.language)
            return message
        finally:
            self._guard.release(SEND_RESOURCE)

    async def _infer_title(self, session_id: str, language: str) -> None:
        session = self._find(session_id)
        if (
            session is None
            or not session.has_default_title
            or session.title_requested
            or len(session.messages) < 2
        ):
            return

        self._replace(session_id, title_requested=True)
        conversation = f"{session.messages[0].text} {session.messages[1].text}"
        try:
            title = await self._agent.generate_title(conversation, language)
        except EnrichmentError:
            return

        current = self._find(session_id)
        if current is None or not current.has_default_title:
            return
        self._replace(session_id, title=title)
        self._audit.log_chat_title_inferred(session_id, title)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _find(self, session_id: Optional[str]) -> Optional[ChatSession]:
        if session_id is None:
            return None
        for session in self._sessions:
            if session.id == session_id:
                return session
        return None

    def _replace(self, session_id: str, **update) -> ChatSession:
        for index, session in enumerate(self._sessions):
            if session.id == session_id:
                updated = session.model_copy(update=update)
                self._sessions[index] = updated
                self._store.save_sessions(self._sessions)
                return updated
        raise NotFoundError(f"Chat session {session_id} not found")

    def _persist(self) -> None:
        self._store.save_sessions(self._sessions)
        self._store.save_active_session_id(self._active_id)
