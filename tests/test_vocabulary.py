import pytest

from src.acled.vocabulary import (
    PARENT_EVENT_TYPE,
    SUB_EVENT_TYPES,
    DisorderType,
    EventType,
    SubEventType,
    check_sub_event,
    parse_label,
)


def test_every_sub_event_has_exactly_one_parent():
    listed = [s for subs in SUB_EVENT_TYPES.values() for s in subs]
    assert len(listed) == len(set(listed)) == len(SubEventType)
    assert set(PARENT_EVENT_TYPE) == set(SubEventType)


def test_parse_label_tolerates_case_and_slash_spacing():
    assert parse_label(EventType, "Explosions / Remote violence") is EventType.EXPLOSIONS_REMOTE_VIOLENCE
    assert parse_label(EventType, "  battles ") is EventType.BATTLES
    assert parse_label(DisorderType, "Political violence;Demonstrations") is DisorderType.POLITICAL_VIOLENCE_DEMONSTRATIONS


def test_parse_label_blank_is_none_and_unknown_raises():
    assert parse_label(SubEventType, None) is None
    assert parse_label(SubEventType, "   ") is None
    with pytest.raises(ValueError):
        parse_label(EventType, "Picnics")


def test_check_sub_event_rejects_foreign_parent():
    with pytest.raises(ValueError, match="does not belong"):
        check_sub_event(EventType.PROTESTS, SubEventType.ARMED_CLASH)


def test_check_sub_event_derives_missing_event_type():
    assert check_sub_event(None, SubEventType.PEACEFUL_PROTEST) is EventType.PROTESTS
    assert check_sub_event(EventType.RIOTS, None) is EventType.RIOTS
    assert check_sub_event(None, None) is None
