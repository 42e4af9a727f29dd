# conversation/assembler.py
from __future__ import annotations
from typing import List, Sequence

from backend.src.conversation.heuristics import NEXT_SOLUTION_PREFIX, count_questions, is_retry_request
from backend.src.core import constants as C
from backend.src.schemas.turns import Turn, system_turn
from backend.src.session.store import SessionStore
from backend.src.session.trimming import trim_history


def long_session_note(history: Sequence[Turn]) -> Turn:
    user_turns = [t for t in history if t.role == "user"]
    questions = sum(count_questions(t.text) for t in user_turns)
    return system_turn(
        f"This is a long conversation: {len(history)} earlier messages "
        f"({len(user_turns)} from the user, about {questions} questions asked). "
        "Several different issues may have been discussed. Focus on the most recent one "
        "unless the user refers back to an earlier problem."
    )


def rewrite_user_turn(turn: Turn) -> Turn:
    """Outgoing-only rewrite: ask for the next fix when the last one failed."""
    if turn.role == "user" and is_retry_request(turn.text):
        return turn.with_text_prefix(NEXT_SOLUTION_PREFIX)
    return turn


class ConversationAssembler:
    def __init__(
        self,
        store: SessionStore,
        long_session_threshold: int = C.LONG_SESSION_THRESHOLD,
    ):
        self.store = store
        self.long_session_threshold = long_session_threshold

    def compose(self, session_id: str, system_prompt: str, new_user_turn: Turn) -> List[Turn]:
        """[system] (+ long-session note) + trimmed history + [new user turn].

        Nothing here is written back to the store.
        """
        history = self.store.get_history(session_id)
        out: List[Turn] = [system_turn(system_prompt)]
        if len(history) > self.long_session_threshold:
            out.append(long_session_note(history))
        out.extend(
            trim_history(history, self.store.history_cap, self.store.history_head, self.store.history_tail)
        )
        out.append(rewrite_user_turn(new_user_turn))
        return out
