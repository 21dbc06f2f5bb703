"""In-memory history for follow-up fitness questions."""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from threading import Lock
from typing import Deque, Dict, List, Optional

from fitcoach.services.plan_generator import PlanGenerator


logger = logging.getLogger(__name__)

MAX_HISTORY_SIZE = 10

FITNESS_KEYWORDS = (
    "workout", "exercise", "gym", "fitness", "training", "muscle", "cardio",
    "nutrition", "diet", "protein", "calories", "weight", "fat", "supplement",
    "yoga", "strength", "running", "bodybuilding", "health", "meal", "food",
    "macros", "vitamins", "recovery", "stretching", "flexibility", "endurance",
)


@dataclass(frozen=True)
class ConversationMessage:
    role: str
    content: str


def is_likely_fitness_related(question: str) -> bool:
    lowered = question.lower()
    return any(keyword in lowered for keyword in FITNESS_KEYWORDS)


class ConversationMemory:
    """Keeps the last ``max_messages`` messages of each conversation."""

    def __init__(self, max_messages: int = MAX_HISTORY_SIZE):
        self._max_messages = max_messages
        self._conversations: Dict[str, Deque[ConversationMessage]] = {}
        self._lock = Lock()

    def add(self, conversation_id: str, role: str, content: str) -> None:
        with self._lock:
            history = self._conversations.setdefault(conversation_id, deque(maxlen=self._max_messages))
            history.append(ConversationMessage(role=role, content=content))

    def history(self, conversation_id: str) -> List[ConversationMessage]:
        with self._lock:
            return list(self._conversations.get(conversation_id, ()))

    def context(self, conversation_id: str) -> str:
        """Earlier turns formatted for the prompt; empty for an unknown conversation."""
        messages = self.history(conversation_id)
        if not messages:
            return ""
        lines = ["Previous conversation:"]
        lines += [f"{message.role}: {message.content}" for message in messages]
        return "\n".join(lines)

    def clear(self, conversation_id: str) -> bool:
        with self._lock:
            return self._conversations.pop(conversation_id, None) is not None

    def conversation_ids(self) -> List[str]:
        with self._lock:
            return list(self._conversations)


def ask_with_memory(
    generator: PlanGenerator,
    memory: ConversationMemory,
    question: str,
    conversation_id: Optional[str] = None,
) -> str:
    """
    Answer ``question``, replaying earlier turns when a conversation id is given.

    Both the question and the answer are remembered only after the model
    answers, so a failed call leaves the history untouched.
    """
    if not is_likely_fitness_related(question):
        logger.warning("Question may not be fitness-related: %s", question)

    conversation_id = (conversation_id or "").strip() or None
    context = memory.context(conversation_id) if conversation_id else ""
    answer = generator.ask(question, context)

    if conversation_id:
        memory.add(conversation_id, "user", question)
        memory.add(conversation_id, "assistant", answer)
    return answer
