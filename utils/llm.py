"""Completion client for the text-generation backend (Anthropic Messages API)."""

import json
import logging
import os
import re
import threading
import time

import anthropic

from config.defaults import DEFAULTS

logger = logging.getLogger(__name__)

MODEL = DEFAULTS["model"]
MAX_TOKENS = DEFAULTS["max_tokens"]

_JSON_RE = re.compile(r"\{[\s\S]*\}|\[[\s\S]*\]")

_STRUCTURED_SUFFIX = (
    "\n\nIMPORTANT: Respond ONLY with valid JSON. No markdown fences, no commentary."
)


class CompletionError(Exception):
    """Base class for every completion backend failure."""


class MissingCredential(CompletionError):
    """No API key configured. Callers switch the whole run to demo mode."""


class RateLimited(CompletionError):
    """Backend answered 429 and the single retry after cooldown failed too."""


class Overloaded(CompletionError):
    """Backend degraded or unreachable. Never retried."""


class RateLimiter:
    """Process-wide minimum delay between consecutive outbound model calls.

    One instance is built per process and handed to the CompletionClient.
    Callers that arrive before the window has elapsed block until it has.
    """

    def __init__(self, min_interval=None, clock=time.monotonic, sleep=time.sleep):
        if min_interval is None:
            min_interval = DEFAULTS["rate_limit_delay"]
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_request = None
        self._lock = threading.Lock()

    def wait(self):
        """Block until the minimum interval since the previous call has elapsed."""
        with self._lock:
            if self._last_request is not None:
                remaining = self.min_interval - (self._clock() - self._last_request)
                if remaining > 0:
                    logger.info("Rate limiting: waiting %.2fs before next request", remaining)
                    self._sleep(remaining)
            self._last_request = self._clock()


def get_api_key():
    """Return the configured completion API key, or None."""
    key = os.environ.get(DEFAULTS["completion_key_env"], "").strip()
    return key or None


def malformed_sentinel(error, raw_response=""):
    """The degraded structured result: valid to return, never an exception."""
    return {"error": error, "raw_response": raw_response, "fallback": True}


def is_malformed(result):
    return isinstance(result, dict) and result.get("fallback") is True and "error" in result


def parse_structured(text):
    """Extract a JSON object or array from free text.

    Tries the first brace/bracket span, then the whole trimmed text.
    Returns the parsed value, or the malformed-response sentinel.
    """
    cleaned = text.strip()
    match = _JSON_RE.search(cleaned)
    if match:
        try:
            return json.loads(match.group(0))
        except json.JSONDecodeError as e:
            logger.debug("Extracted JSON span did not parse: %s", e)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        logger.warning("Model response is not valid JSON (%d chars)", len(cleaned))
        return malformed_sentinel("Failed to parse model response as JSON", cleaned)


class CompletionClient:
    """Single outbound call to the completion backend with rate gating.

    Failure policy:
        RateLimited  -> wait the cooldown, retry exactly once
        Overloaded   -> raise immediately
        MissingCredential -> raise before any network or rate-gate wait
    """

    def __init__(self, limiter=None, api_key=None, model=None, max_tokens=None,
                 cooldown=None, sleep=time.sleep, sdk_client=None):
        self.limiter = limiter or RateLimiter()
        self.api_key = api_key
        self.model = model or MODEL
        self.max_tokens = max_tokens or MAX_TOKENS
        self.cooldown = DEFAULTS["rate_limit_cooldown"] if cooldown is None else cooldown
        self._sleep = sleep
        self._sdk_client = sdk_client

    def is_available(self):
        """Lightweight availability probe: is a credential configured at all."""
        return bool(self.api_key or get_api_key())

    def complete(self, prompt, structured=False):
        """Return the model's text, or a parsed JSON value when structured=True."""
        if structured:
            prompt = prompt + _STRUCTURED_SUFFIX

        try:
            text = self._call(prompt)
        except RateLimited:
            logger.warning("Rate limit hit, waiting %ss before retrying once", self.cooldown)
            self._sleep(self.cooldown)
            text = self._call(prompt)

        if structured:
            return parse_structured(text)
        return text

    def _get_sdk_client(self):
        key = self.api_key or get_api_key()
        if not key:
            raise MissingCredential(
                f"{DEFAULTS['completion_key_env']} environment variable is not set"
            )
        if self._sdk_client is None:
            # Retries are ours to decide, the SDK must not add its own.
            self._sdk_client = anthropic.Anthropic(api_key=key, max_retries=0)
        return self._sdk_client

    def _call(self, prompt):
        client = self._get_sdk_client()
        self.limiter.wait()
        try:
            response = client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIStatusError as e:
            if e.status_code == 429:
                raise RateLimited(str(e)) from e
            if e.status_code >= 500:
                raise Overloaded(f"Completion backend degraded ({e.status_code})") from e
            raise CompletionError(f"Completion request failed ({e.status_code}): {e}") from e
        except anthropic.APIConnectionError as e:
            raise Overloaded(f"Completion backend unreachable: {e}") from e
        except anthropic.APIError as e:
            raise CompletionError(f"Completion request failed: {e}") from e

        return "".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        )
