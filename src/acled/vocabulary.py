"""
src/acled/vocabulary.py - Closed ACLED vocabularies for the aggregated data.

Based on the ACLED codebook:
https://acleddata.com/methodology/acled-codebook
https://acleddata.com/use-access/how-use-acleds-aggregated-data

Spreadsheet labels are matched case-insensitively and with the spacing around
"/" and ";" collapsed ("Explosions / Remote violence" == "Explosions/Remote violence").
"""
from __future__ import annotations

import re
from enum import Enum
from typing import Dict, Optional, Tuple, Type, TypeVar


class GeographicAreaType(str, Enum):
    REGION = "region"
    COUNTRY = "country"
    ADMIN1 = "admin_1"


# Tipo padre obligatorio por nivel (region no tiene padre)
PARENT_TYPE: Dict[GeographicAreaType, Optional[GeographicAreaType]] = {
    GeographicAreaType.REGION: None,
    GeographicAreaType.COUNTRY: GeographicAreaType.REGION,
    GeographicAreaType.ADMIN1: GeographicAreaType.COUNTRY,
}


class DisorderType(str, Enum):
    POLITICAL_VIOLENCE = "Political violence"
    DEMONSTRATIONS = "Demonstrations"
    POLITICAL_VIOLENCE_DEMONSTRATIONS = "Political violence; Demonstrations"
    STRATEGIC_DEVELOPMENTS = "Strategic developments"


class EventType(str, Enum):
    BATTLES = "Battles"
    PROTESTS = "Protests"
    RIOTS = "Riots"
    EXPLOSIONS_REMOTE_VIOLENCE = "Explosions/Remote violence"
    VIOLENCE_AGAINST_CIVILIANS = "Violence against civilians"
    STRATEGIC_DEVELOPMENTS = "Strategic developments"


class SubEventType(str, Enum):
    # Battles
    GOVERNMENT_REGAINS_TERRITORY = "Government regains territory"
    NON_STATE_ACTOR_OVERTAKES_TERRITORY = "Non-state actor overtakes territory"
    ARMED_CLASH = "Armed clash"
    # Protests
    EXCESSIVE_FORCE_AGAINST_PROTESTERS = "Excessive force against protesters"
    PROTEST_WITH_INTERVENTION = "Protest with intervention"
    PEACEFUL_PROTEST = "Peaceful protest"
    # Riots
    VIOLENT_DEMONSTRATION = "Violent demonstration"
    MOB_VIOLENCE = "Mob violence"
    # Explosions/Remote violence
    CHEMICAL_WEAPON = "Chemical weapon"
    AIR_DRONE_STRIKE = "Air/drone strike"
    SUICIDE_BOMB = "Suicide bomb"
    SHELLING_ARTILLERY_MISSILE_ATTACK = "Shelling/artillery/missile attack"
    REMOTE_EXPLOSIVE_LANDMINE_IED = "Remote explosive/landmine/IED"
    GRENADE = "Grenade"
    # Violence against civilians
    SEXUAL_VIOLENCE = "Sexual violence"
    ATTACK = "Attack"
    ABDUCTION_FORCED_DISAPPEARANCE = "Abduction/forced disappearance"
    # Strategic developments
    AGREEMENT = "Agreement"
    ARRESTS = "Arrests"
    CHANGE_TO_GROUP_ACTIVITY = "Change to group/activity"
    DISRUPTED_WEAPONS_USE = "Disrupted weapons use"
    HEADQUARTERS_OR_BASE_ESTABLISHED = "Headquarters or base established"
    LOOTING_PROPERTY_DESTRUCTION = "Looting/property destruction"
    NON_VIOLENT_TRANSFER_OF_TERRITORY = "Non-violent transfer of territory"
    OTHER = "Other"


SUB_EVENT_TYPES: Dict[EventType, Tuple[SubEventType, ...]] = {
    EventType.BATTLES: (
        SubEventType.GOVERNMENT_REGAINS_TERRITORY,
        SubEventType.NON_STATE_ACTOR_OVERTAKES_TERRITORY,
        SubEventType.ARMED_CLASH,
    ),
    EventType.PROTESTS: (
        SubEventType.EXCESSIVE_FORCE_AGAINST_PROTESTERS,
        SubEventType.PROTEST_WITH_INTERVENTION,
        SubEventType.PEACEFUL_PROTEST,
    ),
    EventType.RIOTS: (
        SubEventType.VIOLENT_DEMONSTRATION,
        SubEventType.MOB_VIOLENCE,
    ),
    EventType.EXPLOSIONS_REMOTE_VIOLENCE: (
        SubEventType.CHEMICAL_WEAPON,
        SubEventType.AIR_DRONE_STRIKE,
        SubEventType.SUICIDE_BOMB,
        SubEventType.SHELLING_ARTILLERY_MISSILE_ATTACK,
        SubEventType.REMOTE_EXPLOSIVE_LANDMINE_IED,
        SubEventType.GRENADE,
    ),
    EventType.VIOLENCE_AGAINST_CIVILIANS: (
        SubEventType.SEXUAL_VIOLENCE,
        SubEventType.ATTACK,
        SubEventType.ABDUCTION_FORCED_DISAPPEARANCE,
    ),
    EventType.STRATEGIC_DEVELOPMENTS: (
        SubEventType.AGREEMENT,
        SubEventType.ARRESTS,
        SubEventType.CHANGE_TO_GROUP_ACTIVITY,
        SubEventType.DISRUPTED_WEAPONS_USE,
        SubEventType.HEADQUARTERS_OR_BASE_ESTABLISHED,
        SubEventType.LOOTING_PROPERTY_DESTRUCTION,
        SubEventType.NON_VIOLENT_TRANSFER_OF_TERRITORY,
        SubEventType.OTHER,
    ),
}

# Inverso: sub-evento -> tipo de evento padre
PARENT_EVENT_TYPE: Dict[SubEventType, EventType] = {
    sub: event for event, subs in SUB_EVENT_TYPES.items() for sub in subs
}

E = TypeVar("E", bound=Enum)


def label_key(label: str) -> str:
    s = (label or "").strip().lower()
    s = re.sub(r"\s*([/;])\s*", r"\1", s)
    s = re.sub(r"\s+", " ", s)
    return s


def _build_lookup(enum_cls: Type[E]) -> Dict[str, E]:
    return {label_key(m.value): m for m in enum_cls}


_LOOKUPS: Dict[type, Dict[str, Enum]] = {
    DisorderType: _build_lookup(DisorderType),
    EventType: _build_lookup(EventType),
    SubEventType: _build_lookup(SubEventType),
}


def parse_label(enum_cls: Type[E], label: Optional[str]) -> Optional[E]:
    """
    Map a spreadsheet label onto `enum_cls`. Blank -> None, unknown -> ValueError.
    """
    if label is None or not str(label).strip():
        return None
    member = _LOOKUPS[enum_cls].get(label_key(str(label)))
    if member is None:
        raise ValueError(f"Unknown {enum_cls.__name__} label: {label!r}")
    return member  # type: ignore[return-value]


def check_sub_event(
    event_type: Optional[EventType],
    sub_event_type: Optional[SubEventType],
) -> Optional[EventType]:
    """
    Validate the event / sub-event pair and return the effective event type.

    A sub-event without an event type takes its parent from PARENT_EVENT_TYPE.
    """
    if sub_event_type is None:
        return event_type
    parent = PARENT_EVENT_TYPE[sub_event_type]
    if event_type is None:
        return parent
    if event_type is not parent:
        raise ValueError(
            f"Sub-event type {sub_event_type.value!r} does not belong to "
            f"event type {event_type.value!r} (expected {parent.value!r})"
        )
    return event_type
