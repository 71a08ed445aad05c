import pytest

from dext_manager.messaging.topic_factory import TopicFactory


def test_create_topic_for_activation_status_is_lowercase():
    topic = TopicFactory.create_topic_for_activation_status("com.example.SimpleAudio.Driver")

    assert topic == "activation_status::com.example.simpleaudio.driver"


def test_create_topic_for_activation_status_rejects_invalid_identifier():
    with pytest.raises(ValueError, match="contains invalid characters"):
        TopicFactory.create_topic_for_activation_status("com.example app.Driver")


def test_wildcard_topic_for_all_statuses():
    assert TopicFactory.create_topic_for_all_activation_statuses() == "activation_status::*"


def test_create_topic_from_parts():
    assert TopicFactory.create_topic_from_parts(("a", "b", "c")) == "a::b::c"


def test_validate_topic_reports_empty_part():
    with pytest.raises(ValueError, match="found empty part"):
        TopicFactory.validate_topic("a::::b")
