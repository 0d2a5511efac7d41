"""
Act-transition events: once an act is over, every player answers one closing
question before play continues. Questions rotate per player and are worded by age.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from game.engine import add_turn, current_act, is_game_complete, next_player
from game.rules import TemplateType, TurnStatus
from game.state import GameSession, Player, Turn

KID_AGE_LIMIT = 13
TEEN_AGE_LIMIT = 18
ANSWER_MAX_LENGTH = 500


@dataclass(frozen=True)
class TransitionQuestion:
    """One question with kid, teen and adult wordings."""

    category: str
    kid: str
    teen: str
    adult: str
    placeholder: str

    def for_age(self, age: Optional[int]) -> str:
        """Players without an age get the adult wording."""
        if age is None or age >= TEEN_AGE_LIMIT:
            return self.adult
        return self.kid if age < KID_AGE_LIMIT else self.teen


@dataclass(frozen=True)
class TransitionEvent:
    id: str
    name: str
    after_act: int
    banner_title: str
    question_subtitle: str
    questions: tuple[TransitionQuestion, ...]
    message: Callable[[int], str]
    prompt_heading: str
    prompt_footer: str

    @property
    def categories(self) -> list[str]:
        return list(dict.fromkeys(q.category for q in self.questions))

    def select_question(self, player_index: int) -> TransitionQuestion:
        """Category rotates with the player's seat; later laps take the next question in that category."""
        categories = self.categories
        category = categories[player_index % len(categories)]
        options = [q for q in self.questions if q.category == category]
        return options[(player_index // len(categories)) % len(options)]


def _insights_message(remaining: int) -> str:
    if remaining == 0:
        return "Time to unlock the real games..."
    people = "person" if remaining == 1 else "people"
    return f"Before we move to the games, let's learn a bit more about everyone. {remaining} {people} to go."


ACT1_INSIGHTS = TransitionEvent(
    id="act1_insights",
    name="Act 1 Insights",
    after_act=1,
    banner_title="Act 1 Complete",
    question_subtitle="Act 1 Closing Question",
    message=_insights_message,
    prompt_heading=(
        "## Player Insights (Collected at End of Act 1)\n\n"
        "Use this information to personalize questions and mini-games:"
    ),
    prompt_footer=(
        "Use these insights to craft MORE PERSONALIZED questions and make mini-games "
        "MORE RELEVANT to each player's interests and revelations."
    ),
    questions=(
        TransitionQuestion(
            "interests",
            "What are 3 things you LOVE to do or talk about?",
            "Name 3 topics you could talk about for hours without getting bored.",
            "What 3 subjects could you discuss endlessly and never tire of?",
            "e.g., dinosaurs, video games, cooking...",
        ),
        TransitionQuestion(
            "interests",
            "If you could learn about ANYTHING, what would it be?",
            "What's something you wish you knew more about?",
            "What topic have you been meaning to dive deeper into?",
            "e.g., space, history, music production...",
        ),
        TransitionQuestion(
            "learning",
            "What's something cool you learned recently that blew your mind?",
            "What's the most interesting thing you've learned lately?",
            "What's a fascinating fact or insight you've discovered recently?",
            "Tell us what surprised you...",
        ),
        TransitionQuestion(
            "learning",
            "What's something you learned that you couldn't wait to tell someone?",
            "What's something you learned that made you say 'wait, really?'",
            "What's a piece of knowledge that changed how you see something?",
            "Share your discovery...",
        ),
        TransitionQuestion(
            "family_fact",
            "What's something funny or cool about someone in the family that you love?",
            "What's a fun fact about a family member that always makes you smile?",
            "What's an endearing quirk or fact about someone here that you appreciate?",
            "e.g., Dad's secret talent, Mom's funny habit...",
        ),
        TransitionQuestion(
            "family_fact",
            "What's something nice you noticed someone in the family did recently?",
            "What's something a family member did recently that impressed you?",
            "What's a small but meaningful thing you've noticed about a family member lately?",
            "Share what you noticed...",
        ),
        TransitionQuestion(
            "secret",
            "What's a silly secret you don't mind sharing with the family?",
            "What's a harmless secret you're willing to reveal to everyone here?",
            "What's something you haven't told the family that you're okay sharing now?",
            "A fun revelation for the family...",
        ),
        TransitionQuestion(
            "secret",
            "What's something you do that you think nobody knows about?",
            "What's a guilty pleasure or habit you've been keeping low-key?",
            "What's a small confession that would surprise people here?",
            "Time to come clean...",
        ),
        TransitionQuestion(
            "focus",
            "What kind of questions or games would be the most fun for you?",
            "What would make this game more interesting for you?",
            "What topics or themes would you enjoy seeing more of in this game?",
            "e.g., more music questions, funny stories...",
        ),
        TransitionQuestion(
            "focus",
            "What's something you want everyone to know about you?",
            "What's something you wish people understood about you better?",
            "What aspect of yourself do you feel is often overlooked?",
            "Something important to you...",
        ),
    ),
)

# Ordered by when they trigger
TRANSITION_EVENTS: list[TransitionEvent] = [ACT1_INSIGHTS]


def get_transition_event(event_id: str) -> Optional[TransitionEvent]:
    for event in TRANSITION_EVENTS:
        if event.id == event_id:
            return event
    return None


def event_turns(state: GameSession, event: TransitionEvent) -> list[Turn]:
    return [t for t in state.turns if t.transition_event == event.id]


def awaiting_players(state: GameSession, event: TransitionEvent) -> list[Player]:
    """Players who have not been asked this event's question yet, in roster order."""
    asked = {t.player_id for t in event_turns(state, event)}
    return [p for p in state.players if p.id not in asked]


def is_event_complete(state: GameSession, event: TransitionEvent) -> bool:
    """Every player has answered or skipped the event's question."""
    resolved = {t.player_id for t in event_turns(state, event) if t.status != TurnStatus.PENDING}
    return all(p.id in resolved for p in state.players)


def pending_transition_event(state: GameSession) -> Optional[TransitionEvent]:
    """The first event whose act is over but which still has players to hear from."""
    if is_game_complete(state):
        return None
    act = current_act(state)
    for event in TRANSITION_EVENTS:
        if act > event.after_act and not is_event_complete(state, event):
            return event
    return None


def next_player_to_ask(state: GameSession) -> Optional[Player]:
    """During a transition the device goes to whoever still owes an answer; otherwise normal rotation."""
    event = pending_transition_event(state)
    if event is None:
        return next_player(state)
    for t in event_turns(state, event):
        if t.status == TurnStatus.PENDING:
            return state.get_player(t.player_id)
    waiting = awaiting_players(state, event)
    return waiting[0] if waiting else None


def add_transition_turn(state: GameSession, event: TransitionEvent, player_id: str) -> tuple[GameSession, str]:
    """
    Record the event's question for a player as a pending free-text turn.
    Returns (new_state, turn_id). Raises ValueError for a player who was already asked.
    """
    player = state.get_player(player_id)
    if player is None:
        raise ValueError(f"Unknown player: {player_id}")
    waiting = awaiting_players(state, event)
    if player not in waiting:
        raise ValueError(f"{player.name} already answered the {event.name} question")
    question = event.select_question(state.players.index(player))
    params = {
        "transitionEvent": event.id,
        "category": question.category,
        "subtitle": event.question_subtitle,
        "placeholder": question.placeholder,
        "maxLength": ANSWER_MAX_LENGTH,
        "hostLine": event.message(len(waiting) - 1),
    }
    if len(waiting) == len(state.players):
        params["banner"] = event.banner_title
    return add_turn(state, player.id, TemplateType.TEXT_AREA.value, question.for_age(player.age), params)


def format_event_responses(event: TransitionEvent, turns: list[Turn]) -> str:
    """Answers grouped by player, tagged with their category."""
    answered = [t for t in turns if t.status == TurnStatus.COMPLETED and t.response]
    if not answered:
        return ""
    by_player: dict[str, list[Turn]] = {}
    for t in answered:
        by_player.setdefault(t.player_name, []).append(t)
    lines = [event.prompt_heading, ""]
    for name, player_turns in by_player.items():
        lines.append(f"**{name}:**")
        lines.extend(f"- [{t.template_params.get('category', '').upper()}] {t.response}" for t in player_turns)
        lines.append("")
    lines.append(event.prompt_footer)
    return "\n".join(lines)


def format_transition_responses(state: GameSession) -> str:
    """Prompt section for every completed event."""
    sections = [
        format_event_responses(event, event_turns(state, event))
        for event in TRANSITION_EVENTS
        if is_event_complete(state, event)
    ]
    return "\n\n".join(s for s in sections if s)
