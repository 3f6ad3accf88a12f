"""
Conversation state management.

Tracks the session state and the ordered transcript of a voice
conversation. The transcript only grows: messages are appended in
conversation order and never edited or removed during a session.
"""

from uuid import UUID, uuid4

from voice_companion.engine.schemas import Message, SessionState


class ConversationState:
    """
    Manages the mutable state of one conversation session.

    Owned exclusively by a ConversationOrchestrator; the presentation layer
    only ever receives copies.
    """

    def __init__(self) -> None:
        """Initialize an empty conversation."""
        self._session_id: UUID = uuid4()
        self._state: SessionState = SessionState.IDLE
        self._transcript: list[Message] = []

    @property
    def session_id(self) -> UUID:
        """Get the unique session identifier."""
        return self._session_id

    @property
    def state(self) -> SessionState:
        """Get the current session state."""
        return self._state

    @property
    def transcript(self) -> list[Message]:
        """Get all messages in conversation order."""
        return self._transcript.copy()

    def set_state(self, state: SessionState) -> bool:
        """
        Set the session state.

        Args:
            state: The new state.

        Returns:
            True if the state changed.
        """
        if state == self._state:
            return False
        self._state = state
        return True

    def append_message(self, text: str, *, is_user: bool) -> Message:
        """
        Append a message to the transcript.

        Args:
            text: Message text.
            is_user: Whether the user said it.

        Returns:
            The created Message.
        """
        message = Message(text=text, is_user=is_user)
        self._transcript.append(message)
        return message
