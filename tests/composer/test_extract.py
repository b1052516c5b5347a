import pytest

from services.composer.app.domain.extract import (
    SERVICE_KEYWORDS,
    derive_name,
    detect_service,
    extract,
    extract_actions,
    extract_conditions,
    extract_schedule,
    extract_trigger,
)
from services.composer.app.domain.types import ClauseKind


def test_service_keyword_order_is_pinned():
    services = [service for service, _ in SERVICE_KEYWORDS]
    assert services[:5] == ["slack", "google-sheets", "mailchimp", "email", "http"]
    assert services.index("openai") < services.index("airtable") < services.index("salesforce")


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("forward my gmail to the team", "email"),
        ("add the subscriber to mailchimp", "mailchimp"),
        ("copy the spreadsheet row into an email", "google-sheets"),
        ("post the email summary to slack", "slack"),
        ("summarize it with ChatGPT", "openai"),
        ("wait two minutes", None),
    ],
)
def test_detect_service_first_listed_service_wins(text, expected):
    assert detect_service(text) == expected


def test_trigger_from_when_clause():
    clause = extract_trigger("When a new email arrives, post it to Slack")
    assert clause is not None
    assert clause.kind is ClauseKind.trigger
    assert clause.text == "a new email arrives"
    assert clause.service == "email"


def test_trigger_from_watch_clause():
    clause = extract_trigger("Watch for new Shopify orders then create an invoice")
    assert clause is not None
    assert clause.text == "new shopify orders"
    assert clause.service == "shopify"


def test_no_trigger_phrase():
    assert extract_trigger("Send a Slack message to the team") is None


def test_actions_split_on_connectives_and_skip_trigger_segment():
    actions = extract_actions("When a form is submitted, add a row to the sheet and send a Slack message")
    assert [action.text for action in actions] == ["add a row to the sheet", "send a slack message"]
    assert [action.service for action in actions] == ["google-sheets", "slack"]


def test_actions_keep_first_segment_without_trigger():
    actions = extract_actions("Fetch the weather from the API then post it to Slack")
    assert [action.text for action in actions] == ["fetch the weather from the api", "post it to slack"]


def test_conditions_collected_per_pattern_in_order():
    conditions = extract_conditions("If the order is paid then post to Slack when the order is shipped")
    assert [condition.text for condition in conditions] == ["the order is paid", "the order"]
    assert all(condition.kind is ClauseKind.condition for condition in conditions)


@pytest.mark.parametrize(
    ("text", "interval"),
    [
        ("Every 15 minutes check the API", 900),
        ("Run daily and email a digest", 86400),
        ("every hour post to slack", 3600),
        ("send a slack message", None),
    ],
)
def test_schedule_detection(text, interval):
    schedule = extract_schedule(text)
    assert (schedule.interval if schedule else None) == interval


@pytest.mark.parametrize("text", ["", "   ", "!!! ???"])
def test_blank_descriptions(text):
    result = extract(text)
    assert result.is_blank
    assert result.trigger is None
    assert result.actions == []


def test_derive_name():
    assert derive_name("Send the weekly report to #general on Slack") == "Send the weekly report to"
    assert derive_name("!!! ???") == "Generated Scenario"
    assert derive_name("a b c", word_limit=2) == "a b"


def test_same_span_from_two_patterns_is_kept_twice():
    conditions = extract_conditions("if paid then ship it. checks if paid")
    assert [condition.text for condition in conditions] == ["paid", "paid"]
