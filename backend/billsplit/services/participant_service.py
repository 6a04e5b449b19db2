import uuid

from billsplit.core.errors import ParticipantNotFoundError, ValidationError
from billsplit.models.participant import Participant


AVATAR_COLORS = (
    "#4CAF50", "#2196F3", "#FF9800", "#E91E63",
    "#9C27B0", "#00BCD4", "#FF5722", "#607D8B",
)


def add_participant(
    participants: tuple[Participant, ...], name: str
) -> tuple[tuple[Participant, ...], Participant]:
    """Append a participant. The first one added becomes the payer."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Participant name is required")

    participant = Participant(
        id=uuid.uuid4().hex,
        name=name,
        initial=name[0].upper(),
        color=AVATAR_COLORS[len(participants) % len(AVATAR_COLORS)],
        is_payer=not participants,
    )
    return participants + (participant,), participant


def get_participant(participants: tuple[Participant, ...], participant_id: str) -> Participant:
    for p in participants:
        if p.id == participant_id:
            return p
    raise ParticipantNotFoundError(participant_id)


def get_payer(participants: tuple[Participant, ...]) -> Participant | None:
    return next((p for p in participants if p.is_payer), None)


def remove_participant(
    participants: tuple[Participant, ...], participant_id: str
) -> tuple[Participant, ...]:
    """
    Drop a participant. If they were paying, the first remaining participant
    takes over, or nobody does when the list is now empty.
    Purging their assignments is the caller's job (see purge_participant).
    """
    removed = get_participant(participants, participant_id)
    remaining = tuple(p for p in participants if p.id != participant_id)

    if removed.is_payer and remaining:
        first = remaining[0].model_copy(update={"is_payer": True})
        remaining = (first,) + remaining[1:]
    return remaining


def set_payer(participants: tuple[Participant, ...], participant_id: str) -> tuple[Participant, ...]:
    get_participant(participants, participant_id)
    return tuple(
        p if p.is_payer == (p.id == participant_id) else p.model_copy(update={"is_payer": p.id == participant_id})
        for p in participants
    )
