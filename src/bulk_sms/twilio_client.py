from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any, Protocol

import requests
from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

from .config import TwilioConfig
from .outcome import SendOutcome

logger = logging.getLogger(__name__)

API_VERSION = "2010-04-01"
DEFAULT_API_BASE = "https://api.twilio.com"

# Bytes that go on the wire unescaped; everything else becomes %xx.
UNRESERVED = frozenset(
    b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_.~"
)


class Sender(Protocol):
    def send(self, from_: str, to: str, body: str) -> SendOutcome: ...


def url_encode(value: str) -> str:
    """
    Percent-encode ``value`` for a form body.

    ASCII letters, digits and ``-_.~`` pass through; every other UTF-8 byte
    is written as ``%xx`` with lowercase hex (``"@"`` -> ``"%40"``).
    """
    return "".join(
        chr(b) if b in UNRESERVED else f"%{b:02x}" for b in value.encode("utf-8")
    )


def encode_form(fields: Iterable[tuple[str, str]]) -> str:
    return "&".join(f"{key}={url_encode(value)}" for key, value in fields)


def messages_url(account_sid: str, base_url: str = DEFAULT_API_BASE) -> str:
    return f"{base_url.rstrip('/')}/{API_VERSION}/Accounts/{account_sid}/Messages.json"


def interpret_reply(recipient: str, text: str) -> SendOutcome:
    """
    Turn a Messages API reply body into an outcome.

    Only the body decides: a string ``sid`` means the message was accepted, an
    ``error_message`` is a provider-reported failure, anything else is
    reported verbatim as an unknown response.
    """
    try:
        data: Any = json.loads(text)
    except ValueError as e:
        return SendOutcome.failure(recipient, f"Error parsing response: {e}")

    if not isinstance(data, dict):
        return SendOutcome.failure(
            recipient, f"Error parsing response: expected a JSON object, got {type(data).__name__}"
        )

    if "sid" in data:
        sid = data["sid"]
        if isinstance(sid, str) and sid:
            return SendOutcome.success(recipient, sid)
        return SendOutcome.failure(
            recipient, f"Error parsing response: sid is not a message identifier: {sid!r}"
        )

    error_message = data.get("error_message")
    if error_message:
        message = f"Twilio Error: {error_message}"
        if data.get("error_code") is not None:
            message += f" (code {data['error_code']})"
        return SendOutcome.failure(recipient, message)

    return SendOutcome.failure(recipient, f"Unknown response: {text}")


class TwilioRestSender:
    """
    Send through the Messages API with a plain form POST.

    The body is encoded by :func:`encode_form` so the exact bytes on the wire
    are under our control.
    """

    def __init__(
        self,
        config: TwilioConfig,
        *,
        timeout: float = 30.0,
        base_url: str = DEFAULT_API_BASE,
        session: requests.Session | None = None,
    ) -> None:
        self.url = messages_url(config.account_sid, base_url)
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.auth = (config.account_sid, config.auth_token)

    def send(self, from_: str, to: str, body: str) -> SendOutcome:
        payload = encode_form([("From", from_), ("To", to), ("Body", body)])
        logger.debug("POST %s to=%s (%d chars)", self.url, to, len(body))
        try:
            response = self.session.post(
                self.url,
                data=payload,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("sms send to %s failed: %s", to, e)
            return SendOutcome.failure(to, f"Connection failed: {e}")

        outcome = interpret_reply(to, response.text)
        if not outcome.ok:
            logger.warning(
                "sms send to %s failed (HTTP %s): %s", to, response.status_code, outcome.message
            )
        return outcome

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> TwilioRestSender:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def get_twilio_client(config: TwilioConfig, timeout: float | None = None) -> Client:
    return Client(
        config.account_sid,
        config.auth_token,
        http_client=TwilioHttpClient(timeout=timeout),
    )


class TwilioClientSender:
    """
    Send through the official ``twilio`` SDK instead of a hand-built POST.

    The SDK always talks to api.twilio.com; only the request timeout is
    configurable here.
    """

    def __init__(
        self,
        config: TwilioConfig,
        client: Client | None = None,
        *,
        timeout: float | None = None,
    ) -> None:
        self.client = client or get_twilio_client(config, timeout)

    def send(self, from_: str, to: str, body: str) -> SendOutcome:
        logger.debug("twilio sdk create to=%s (%d chars)", to, len(body))
        try:
            message = self.client.messages.create(to=to, from_=from_, body=body)
        except TwilioRestException as e:
            logger.warning("sms send to %s failed: %s", to, e.msg)
            return SendOutcome.failure(to, f"Twilio Error: {e.msg} (code {e.code})")
        except (TwilioException, requests.RequestException) as e:
            logger.warning("sms send to %s failed: %s", to, e)
            return SendOutcome.failure(to, f"Connection failed: {e}")

        sid = getattr(message, "sid", None)
        if not sid:
            return SendOutcome.failure(to, "Unknown response: message created without a sid")
        return SendOutcome.success(to, sid)

    def close(self) -> None:
        http_client = getattr(self.client, "http_client", None)
        session = getattr(http_client, "session", None)
        if session is not None:
            session.close()

    def __enter__(self) -> TwilioClientSender:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
