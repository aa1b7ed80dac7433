"""Recipient resolution for notifications.

Per-event notifications always go to the person's own email. CC and BCC
lists exist only on the generic send path, where callers supply them.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from todoapp.domain.models import Person

from .models import RecipientResolutionError


@dataclass(frozen=True)
class Addressing:
    """Primary recipient plus optional copy lists."""

    to: str
    cc: List[str] = field(default_factory=list)
    bcc: List[str] = field(default_factory=list)


def resolve_recipient(person: Optional[Person]) -> str:
    """Return the address a notification for ``person`` should be sent to.

    Raises:
        RecipientResolutionError: If there is no person or the email is blank
    """
    if person is None:
        raise RecipientResolutionError("Cannot resolve recipient: no person given")

    email = (person.email or "").strip()
    if not email:
        raise RecipientResolutionError(f"Person '{person.name}' has no email address")
    return email


def resolve_addressing(
    person: Optional[Person],
    cc: Optional[Iterable[str]] = None,
    bcc: Optional[Iterable[str]] = None,
) -> Addressing:
    """Resolve the primary recipient and clean the copy lists.

    Blank entries are dropped and duplicates removed (first occurrence wins).
    An address already in ``to`` or ``cc`` is not repeated further down.
    """
    to = resolve_recipient(person)
    seen = {to.lower()}
    return Addressing(to=to, cc=_dedupe(cc, seen), bcc=_dedupe(bcc, seen))


def _dedupe(addresses: Optional[Iterable[str]], seen: set) -> List[str]:
    result = []
    for address in addresses or ():
        cleaned = (address or "").strip()
        if cleaned and cleaned.lower() not in seen:
            seen.add(cleaned.lower())
            result.append(cleaned)
    return result
