from unittest import mock

import pytest
import requests
from pydantic import ValidationError

from schemas.email import EmailAttachment, EmailMessage
from utils.email import BrevoTransport, html_to_text


def _message(**overrides):
    data = {
        "from": "Netspire Billing <billing@netspire.com>",
        "to": "ap@acme.example",
        "subject": "Invoice INV-001",
        "html": "<p>Hello&nbsp;there</p><p>Total: <b>$10.00</b></p>",
    }
    data.update(overrides)
    return EmailMessage.model_validate(data)


def test_message_requires_a_body():
    with pytest.raises(ValidationError):
        EmailMessage.model_validate({"from": "a@b.c", "to": "x@y.z", "subject": "s"})


def test_message_requires_a_recipient():
    with pytest.raises(ValidationError):
        _message(to=[])


def test_single_recipient_becomes_a_list():
    assert _message().to == ["ap@acme.example"]


def test_html_to_text():
    assert html_to_text("<p>Hello&nbsp;there</p><p>Line<br>two</p>") == "Hello there\nLine\ntwo"


def test_payload_derives_text_and_parses_sender():
    message = _message(attachments=[
        {"filename": "a.pdf", "contentBase64": "JVBERi0="},
        {"filename": "b.pdf", "url": "https://files.test/b.pdf"},
        {"filename": "empty.pdf"},
    ])
    payload = BrevoTransport(api_key="key").build_payload(message)

    assert payload["sender"] == {"email": "billing@netspire.com", "name": "Netspire Billing"}
    assert payload["to"] == [{"email": "ap@acme.example"}]
    assert payload["textContent"].startswith("Hello there")
    assert payload["attachment"] == [
        {"name": "a.pdf", "content": "JVBERi0="},
        {"name": "b.pdf", "url": "https://files.test/b.pdf"},
    ]


def test_send_returns_message_id():
    response = mock.Mock(status_code=201, text="")
    response.json.return_value = {"messageId": "<abc@brevo>"}
    with mock.patch("utils.email.requests.post", return_value=response) as post:
        result = BrevoTransport(api_key="key", api_url="https://api.test/send").send(_message())

    assert result.ok and result.id == "<abc@brevo>"
    args, kwargs = post.call_args
    assert args[0] == "https://api.test/send"
    assert kwargs["headers"]["api-key"] == "key"
    assert kwargs["timeout"] == 10


def test_non_2xx_is_an_error_result():
    response = mock.Mock(status_code=401, text="unauthorized")
    with mock.patch("utils.email.requests.post", return_value=response):
        result = BrevoTransport(api_key="key").send(_message())
    assert not result.ok
    assert "401" in result.error


def test_network_failure_is_an_error_result():
    with mock.patch("utils.email.requests.post", side_effect=requests.ConnectionError("down")):
        result = BrevoTransport(api_key="key").send(_message())
    assert not result.ok


def test_missing_api_key_never_calls_out():
    with mock.patch("utils.email.requests.post") as post:
        result = BrevoTransport(api_key=None).send(_message())
    assert not result.ok
    post.assert_not_called()


def test_attachment_payload_flag():
    assert EmailAttachment(filename="x.pdf", url="https://files.test/x.pdf").has_payload
    assert not EmailAttachment(filename="x.pdf").has_payload
