"""Resolution of clauses onto concrete catalog modules.

Every public entry point returns a best-effort module: an unknown service or
a clause without any recognizable secondary keyword degrades to a documented
default instead of raising.
"""
from __future__ import annotations

import copy
import re
from types import MappingProxyType
from typing import Any, Callable, Mapping

import structlog

from .catalog import ModuleCatalog
from .extract import detect_service
from .types import ModuleResolution

logger = structlog.get_logger(__name__)

ModuleChoice = tuple[str, dict[str, Any]]
ChoiceFunction = Callable[[str], ModuleChoice]

FALLBACK_TRIGGER = "webhook.customWebhook"
FALLBACK_ACTION = "http.makeRequest"
SLEEP_MODULE = "flow.sleep"
JSON_PARSER_MODULE = "util.jsonParser"

_HTTP_METHODS = (
    ("GET", re.compile(r"\b(?:get|fetch|retrieve|download)\b")),
    ("PUT", re.compile(r"\bput\b")),
    ("PATCH", re.compile(r"\bpatch\b")),
    ("DELETE", re.compile(r"\bdelete\b")),
    ("POST", re.compile(r"\bpost\b")),
)


def _has(text: str, *keywords: str) -> bool:
    return any(keyword in text for keyword in keywords)


def _salesforce_object(text: str) -> str:
    if "contact" in text:
        return "Contact"
    if "opportunity" in text:
        return "Opportunity"
    return "Lead"


def _webhook_trigger(text: str) -> ModuleChoice:
    return FALLBACK_TRIGGER, {
        "name": "Automated Trigger",
        "dataStructure": {
            "type": "collection",
            "spec": [{"name": "data", "type": "text", "required": True}],
        },
    }


# -- triggers: exactly one watch-style module per service ---------------------


def _slack_trigger(text: str) -> ModuleChoice:
    return "slack.watchMessages", {"channel": "#general", "botMention": "mention" in text}


def _sheets_trigger(text: str) -> ModuleChoice:
    return "google-sheets.watchRows", {"spreadsheetId": "{{spreadsheetId}}", "sheetId": "Sheet1", "limit": 10}


def _email_trigger(text: str) -> ModuleChoice:
    return "email.watchEmails", {"folder": "INBOX", "criteria": {"unseen": True}, "maxResults": 10}


def _shopify_trigger(text: str) -> ModuleChoice:
    return "shopify.watchOrders", {"status": "any", "limit": 10}


def _stripe_trigger(text: str) -> ModuleChoice:
    return "stripe.watchEvents", {"events": ["payment_intent.succeeded"]}


def _salesforce_trigger(text: str) -> ModuleChoice:
    return "salesforce.watchRecords", {"object": _salesforce_object(text), "limit": 10}


def _airtable_trigger(text: str) -> ModuleChoice:
    return "airtable.watchRecords", {"baseId": "{{baseId}}", "tableId": "{{tableId}}", "limit": 10}


def _github_trigger(text: str) -> ModuleChoice:
    return "github.watchIssues", {"owner": "{{githubOwner}}", "repo": "{{githubRepo}}", "state": "open"}


TRIGGER_TABLE: Mapping[str, ChoiceFunction] = MappingProxyType(
    {
        "slack": _slack_trigger,
        "google-sheets": _sheets_trigger,
        "email": _email_trigger,
        "shopify": _shopify_trigger,
        "stripe": _stripe_trigger,
        "salesforce": _salesforce_trigger,
        "airtable": _airtable_trigger,
        "github": _github_trigger,
    }
)


# -- actions: each service picks among a few variants by secondary keywords ----


def _slack_action(text: str) -> ModuleChoice:
    if _has(text, "upload", "file"):
        return "slack.uploadFile", {
            "channels": ["#general"],
            "filename": "report.pdf",
            "data": "{{previousModule.file}}",
        }
    if _has(text, "create") and "channel" in text:
        return "slack.createChannel", {"name": "{{channelName}}", "isPrivate": False}
    return "slack.postMessage", {
        "channel": "#general",
        "text": "Automated message: {{trigger.data}}",
        "attachments": [],
    }


def _sheets_action(text: str) -> ModuleChoice:
    base = {"spreadsheetId": "{{spreadsheetId}}", "sheetId": "Sheet1"}
    if _has(text, "add", "create", "new", "append", "log", "insert"):
        return "google-sheets.addRow", {
            **base,
            "values": {"Column A": "{{trigger.field1}}", "Column B": "{{trigger.field2}}"},
        }
    if "update" in text:
        return "google-sheets.updateRow", {
            **base,
            "rowNumber": "{{previousModule.rowNumber}}",
            "values": {"Status": "Updated"},
        }
    if _has(text, "search", "find", "look up", "lookup"):
        return "google-sheets.searchRows", {
            **base,
            "filter": {"conditions": [[{"a": "Column A", "b": "{{trigger.searchTerm}}", "o": "contains"}]]},
        }
    if _has(text, "delete", "remove"):
        return "google-sheets.deleteRow", {**base, "rowNumber": "{{previousModule.rowNumber}}"}
    return "google-sheets.addRow", {**base, "values": {"Column A": "{{trigger.data}}"}}


def _email_action(text: str) -> ModuleChoice:
    body_key = "html" if _has(text, "html", "formatted") else "text"
    return "sendgrid.sendEmail", {
        "to": "{{trigger.email}}",
        "from": "noreply@example.com",
        "subject": "Automated Email",
        body_key: "This is an automated message.",
    }


def _openai_action(text: str) -> ModuleChoice:
    if _has(text, "image", "picture", "illustration"):
        return "openai.createImage", {"prompt": "{{trigger.prompt}}", "size": "1024x1024", "n": 1}
    return "openai.createCompletion", {
        "model": "gpt-4",
        "messages": [
            {"role": "system", "content": "You are a helpful assistant."},
            {"role": "user", "content": "{{trigger.prompt}}"},
        ],
        "temperature": 0.7,
        "max_tokens": 2000,
    }


def _http_action(text: str) -> ModuleChoice:
    if _has(text, "respond", "response", "reply"):
        return "http.webhookResponse", {
            "status": 200,
            "headers": [{"name": "Content-Type", "value": "application/json"}],
            "body": "{{previousModule.data}}",
        }
    method = next((name for name, pattern in _HTTP_METHODS if pattern.search(text)), "POST")
    return "http.makeRequest", {
        "url": "https://api.example.com/endpoint",
        "method": method,
        "headers": [],
        "body": {"data": "{{trigger.data}}"},
    }


def _airtable_action(text: str) -> ModuleChoice:
    base = {"baseId": "{{baseId}}", "tableId": "Table 1"}
    if _has(text, "create", "add"):
        return "airtable.createRecord", {**base, "fields": {"Name": "{{trigger.name}}", "Status": "New"}}
    if "update" in text:
        return "airtable.updateRecord", {
            **base,
            "recordId": "{{previousModule.id}}",
            "fields": {"Status": "Updated"},
        }
    if _has(text, "search", "find"):
        return "airtable.searchRecords", {**base, "formula": "{Name} = '{{trigger.name}}'"}
    return "airtable.createRecord", {**base, "fields": {"Name": "{{trigger.name}}"}}


def _notion_action(text: str) -> ModuleChoice:
    if "update" in text:
        return "notion.updatePage", {
            "pageId": "{{previousModule.id}}",
            "properties": {"Status": {"select": {"name": "Updated"}}},
        }
    return "notion.createPage", {
        "databaseId": "{{notionDatabaseId}}",
        "properties": {"Name": {"title": [{"text": {"content": "{{trigger.title}}"}}]}},
    }


def _shopify_action(text: str) -> ModuleChoice:
    if "inventory" in text:
        return "shopify.updateInventory", {
            "inventory_item_id": "{{trigger.item_id}}",
            "quantity": "{{trigger.quantity}}",
        }
    if "product" in text and "order" not in text:
        return "shopify.createProduct", {"title": "{{trigger.title}}", "status": "draft"}
    return "shopify.createOrder", {
        "line_items": [{"variant_id": "{{trigger.variant_id}}", "quantity": 1}],
        "customer": {"email": "{{trigger.email}}"},
    }


def _stripe_action(text: str) -> ModuleChoice:
    if "refund" in text:
        return "stripe.createRefund", {"payment_intent": "{{trigger.payment_intent}}"}
    if "customer" in text and not _has(text, "charge", "payment"):
        return "stripe.createCustomer", {"email": "{{trigger.email}}", "name": "{{trigger.name}}"}
    return "stripe.createPaymentIntent", {
        "amount": "{{trigger.amount}}",
        "currency": "usd",
        "customer": "{{trigger.customer_id}}",
    }


def _github_action(text: str) -> ModuleChoice:
    base = {"owner": "{{githubOwner}}", "repo": "{{githubRepo}}"}
    if "comment" in text:
        return "github.createComment", {
            **base,
            "issue_number": "{{trigger.issue_number}}",
            "body": "{{trigger.comment}}",
        }
    return "github.createIssue", {**base, "title": "{{trigger.title}}", "body": "{{trigger.description}}"}


def _trello_action(text: str) -> ModuleChoice:
    if "move" in text:
        return "trello.moveCard", {"card_id": "{{previousModule.id}}", "list_id": "{{trelloListId}}"}
    return "trello.createCard", {
        "list_id": "{{trelloListId}}",
        "name": "{{trigger.title}}",
        "desc": "{{trigger.description}}",
    }


def _discord_action(text: str) -> ModuleChoice:
    return "discord.sendMessage", {"channel_id": "{{discordChannelId}}", "content": "{{trigger.message}}"}


def _twilio_action(text: str) -> ModuleChoice:
    if "call" in text:
        return "twilio.makeCall", {"to": "{{trigger.phone}}", "from": "+1234567890"}
    return "twilio.sendSMS", {
        "to": "{{trigger.phone}}",
        "from": "+1234567890",
        "body": "Automated SMS: {{trigger.message}}",
    }


def _mailchimp_action(text: str) -> ModuleChoice:
    return "mailchimp.addSubscriber", {
        "list_id": "{{mailchimpListId}}",
        "email_address": "{{trigger.email}}",
        "merge_fields": {"FNAME": "{{trigger.firstName}}", "LNAME": "{{trigger.lastName}}"},
    }


def _hubspot_action(text: str) -> ModuleChoice:
    if "update" in text:
        return "hubspot.updateContact", {
            "contactId": "{{previousModule.id}}",
            "properties": {"lifecyclestage": "customer"},
        }
    if "deal" in text and "contact" not in text:
        return "hubspot.createDeal", {
            "properties": {"dealname": "{{trigger.dealName}}", "amount": "{{trigger.amount}}"},
        }
    return "hubspot.createContact", {
        "email": "{{trigger.email}}",
        "properties": {"firstname": "{{trigger.firstName}}", "lastname": "{{trigger.lastName}}"},
    }


def _salesforce_action(text: str) -> ModuleChoice:
    object_type = _salesforce_object(text)
    if "update" in text:
        return "salesforce.updateRecord", {
            "object": object_type,
            "id": "{{previousModule.id}}",
            "fields": {"Status": "Updated"},
        }
    if _has(text, "search", "find"):
        return "salesforce.searchRecords", {
            "object": object_type,
            "query": f"SELECT Id, Name, Email FROM {object_type}",
        }
    return "salesforce.createRecord", {
        "object": object_type,
        "fields": {
            "LastName": "{{trigger.lastName}}",
            "Company": "{{trigger.company}}",
            "Email": "{{trigger.email}}",
        },
    }


ACTION_TABLE: Mapping[str, ChoiceFunction] = MappingProxyType(
    {
        "slack": _slack_action,
        "google-sheets": _sheets_action,
        "email": _email_action,
        "sendgrid": _email_action,
        "openai": _openai_action,
        "http": _http_action,
        "airtable": _airtable_action,
        "notion": _notion_action,
        "shopify": _shopify_action,
        "stripe": _stripe_action,
        "github": _github_action,
        "trello": _trello_action,
        "discord": _discord_action,
        "twilio": _twilio_action,
        "mailchimp": _mailchimp_action,
        "hubspot": _hubspot_action,
        "salesforce": _salesforce_action,
    }
)


class CatalogResolver:
    """Map clause text to catalog modules using an injected catalog."""

    def __init__(self, catalog: ModuleCatalog, *, sleep_seconds: int = 5) -> None:
        self._catalog = catalog
        self._sleep_seconds = sleep_seconds

    @property
    def catalog(self) -> ModuleCatalog:
        return self._catalog

    def resolve_trigger(self, clause_text: str | None) -> ModuleResolution:
        text = (clause_text or "").lower()
        service = detect_service(text) if text else None
        choose = TRIGGER_TABLE.get(service) if service else None
        if choose is None:
            logger.info("resolver.fallback", stage="trigger", service=service, module=FALLBACK_TRIGGER)
            return self._resolution(_webhook_trigger(text), service, fallback=True)
        return self._resolution(choose(text), service)

    def resolve_action(self, clause_text: str) -> ModuleResolution:
        text = clause_text.lower()
        service = detect_service(text)
        choose = ACTION_TABLE.get(service) if service else None
        if choose is not None:
            return self._resolution(choose(text), service)

        if _has(text, "wait", "delay", "pause"):
            choice: ModuleChoice = SLEEP_MODULE, {"delay": self._sleep_seconds}
        elif "parse" in text:
            choice = JSON_PARSER_MODULE, {"jsonString": "{{previousModule.data}}"}
        else:
            choice = FALLBACK_ACTION, {
                "url": "https://api.example.com/webhook",
                "method": "POST",
                "headers": [],
                "body": None,
            }
        logger.info("resolver.fallback", stage="action", service=service, module=choice[0])
        return self._resolution(choice, service, fallback=True)

    def _resolution(self, choice: ModuleChoice, service: str | None, fallback: bool = False) -> ModuleResolution:
        module_type, parameters = choice
        return ModuleResolution(
            module_type=module_type,
            version=self._catalog.version_for(module_type),
            parameters=copy.deepcopy(parameters),
            service=service,
            fallback=fallback,
        )


__all__ = [
    "ACTION_TABLE",
    "FALLBACK_ACTION",
    "FALLBACK_TRIGGER",
    "JSON_PARSER_MODULE",
    "SLEEP_MODULE",
    "TRIGGER_TABLE",
    "CatalogResolver",
]
