"""
Tests for message/tag mutations
"""

from datetime import datetime, timezone

import pytest

from triage.conditions import matches_condition
from triage.errors import TagError
from triage.models import Condition, ConditionType, Tag
from triage.mutations import (
    add_tags_to_message,
    create_tag_on_message,
    find_email,
    remove_tag_from_message,
    remove_tag_with_negative_example,
)
from triage.registry import TagRegistry


# === add / remove ===

class TestAddTags:

    def test_union_into_target(self, sample_emails):
        result = add_tags_to_message(sample_emails, "m3", ["work", "urgent"])
        assert find_email(result, "m3").tags == ["business", "work", "urgent"]

    def test_adding_present_tag_is_noop(self, sample_emails):
        result = add_tags_to_message(sample_emails, "m1", ["work"])
        assert result[0] is sample_emails[0]
        assert result[0].tags == ["work", "urgent"]

    def test_other_messages_keep_identity(self, sample_emails):
        result = add_tags_to_message(sample_emails, "m4", ["spam"])
        for before, after in zip(sample_emails, result):
            if before.id != "m4":
                assert after is before

    def test_input_list_is_not_mutated(self, sample_emails):
        add_tags_to_message(sample_emails, "m4", ["spam"])
        assert sample_emails[3].tags == []

    def test_unknown_message_leaves_list_unchanged(self, sample_emails):
        result = add_tags_to_message(sample_emails, "nope", ["spam"])
        assert result == sample_emails

    def test_numeric_ids_match_string_ids(self, sample_emails):
        result = add_tags_to_message(sample_emails, "5", ["work"])
        assert find_email(result, 5).tags == ["spam", "work"]


class TestRemoveTag:

    def test_remove_present_tag(self, sample_emails):
        result = remove_tag_from_message(sample_emails, "m1", "urgent")
        assert find_email(result, "m1").tags == ["work"]

    def test_remove_absent_tag_is_noop(self, sample_emails):
        result = remove_tag_from_message(sample_emails, "m3", "work")
        assert result[2] is sample_emails[2]


# === Dangling references ===

def test_deleting_tag_keeps_it_on_messages(registry, sample_emails):
    assert registry.delete_tag("urgent")
    email = find_email(sample_emails, "m1")

    assert "urgent" in email.tags
    assert matches_condition(email, Condition(ConditionType.INCLUDES_ANY, ["work"]))
    assert not matches_condition(email, Condition(ConditionType.INCLUDES_ANY, ["business"]))


# === remove with negative example ===

class TestRemoveWithNegativeExample:

    def test_records_negative_example(self, registry, sample_emails):
        start = datetime.now(timezone.utc)
        before = len(registry.get_tag("urgent").negative_examples)

        result = remove_tag_with_negative_example(sample_emails, registry, "m1", "urgent", True)

        assert result.ok
        negatives = registry.get_tag("urgent").negative_examples
        assert len(negatives) == before + 1
        assert negatives[-1].subject == "Quarterly report"
        assert negatives[-1].preview == "Numbers attached"
        assert datetime.fromisoformat(negatives[-1].timestamp) >= start
        assert result.tag == registry.get_tag("urgent")
        assert find_email(result.emails, "m1").tags == ["work"]

    def test_without_recording_leaves_tag_alone(self, registry, sample_emails):
        before = registry.get_tag("urgent")
        calls = []
        registry.subscribe(calls.append)

        result = remove_tag_with_negative_example(sample_emails, registry, "m1", "urgent", False)

        assert result.ok
        assert result.tag is None
        assert registry.get_tag("urgent") == before
        assert calls == []
        assert find_email(result.emails, "m1").tags == ["work"]

    def test_explicit_timestamp(self, registry, sample_emails):
        when = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        result = remove_tag_with_negative_example(sample_emails, registry, "m2", "spam", True, now=when)
        assert result.tag.negative_examples[-1].timestamp == when.isoformat()

    def test_missing_message_rejected_before_any_effect(self, registry, sample_emails):
        calls = []
        registry.subscribe(calls.append)

        result = remove_tag_with_negative_example(sample_emails, registry, "ghost", "urgent", True)

        assert result.error is TagError.MESSAGE_NOT_FOUND
        assert result.emails == sample_emails
        assert registry.get_tag("urgent").negative_examples == []
        assert calls == []

    def test_missing_tag_rejected_before_any_effect(self, registry, sample_emails):
        registry.delete_tag("urgent")

        result = remove_tag_with_negative_example(sample_emails, registry, "m1", "urgent", True)

        assert result.error is TagError.TAG_NOT_FOUND
        assert find_email(result.emails, "m1").tags == ["work", "urgent"]

    def test_failing_subscriber_leaves_tag_and_messages_untouched(self, registry, sample_emails):
        def broken(tags):
            raise OSError("disk full")

        registry.subscribe(broken)

        with pytest.raises(OSError):
            remove_tag_with_negative_example(sample_emails, registry, "m1", "urgent", True)

        assert registry.get_tag("urgent").negative_examples == []
        assert find_email(sample_emails, "m1").tags == ["work", "urgent"]

    def test_tag_loaded_over_instruction_limit_still_records(self, sample_emails):
        registry = TagRegistry([Tag(id="urgent", name="Urgent", instructions=["i"] * 6)])

        result = remove_tag_with_negative_example(sample_emails, registry, "m1", "urgent", True)

        assert result.ok
        assert len(result.tag.negative_examples) == 1

    def test_dangling_tag_can_be_removed_without_recording(self, registry, sample_emails):
        registry.delete_tag("urgent")
        result = remove_tag_with_negative_example(sample_emails, registry, "m1", "urgent", False)
        assert result.ok
        assert find_email(result.emails, "m1").tags == ["work"]


# === create tag on message ===

class TestCreateTagOnMessage:

    def test_creates_and_applies(self, registry, sample_emails):
        result = create_tag_on_message(sample_emails, registry, "m4", "Personal")

        assert result.ok
        assert registry.get_tag(result.tag.id).name == "Personal"
        assert find_email(result.emails, "m4").tags == [result.tag.id]

    def test_invalid_name_has_no_effect(self, registry, sample_emails):
        result = create_tag_on_message(sample_emails, registry, "m4", "work")
        assert result.error is TagError.DUPLICATE_NAME
        assert len(registry) == 4
        assert result.emails == sample_emails

    def test_missing_message_has_no_effect(self, registry, sample_emails):
        result = create_tag_on_message(sample_emails, registry, "ghost", "Personal")
        assert result.error is TagError.MESSAGE_NOT_FOUND
        assert registry.search_tags("Personal") == []
