"""
TwiML documents returned to the carrier by the voice continuation webhooks.
"""

from fastapi import Response

VOICE = "alice"


def _twiml(s: str) -> str:
    return '<?xml version="1.0" encoding="UTF-8"?>\n<Response>\n' + s + "\n</Response>"


def _xml_escape(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def twiml_response(body: str) -> Response:
    return Response(content=_twiml(body), media_type="application/xml")


def say_and_hangup(message: str) -> Response:
    tw = f"""
  <Say voice="{VOICE}">{_xml_escape(message)}</Say>
  <Hangup />
"""
    return twiml_response(tw)


def hangup() -> Response:
    return twiml_response("  <Hangup />")


def gather_confirmation(action_url: str) -> Response:
    """Ask the answering user to press 1; fall through to a goodbye on silence."""
    tw = f"""
  <Gather numDigits="1" action="{_xml_escape(action_url)}" method="POST" timeout="8">
    <Say voice="{VOICE}">Press 1 to connect your call.</Say>
  </Gather>
  <Say voice="{VOICE}">No input received. Goodbye.</Say>
  <Hangup />
"""
    return twiml_response(tw)


def dial_number(
    number: str,
    caller_id: str,
    status_callback_url: str | None = None,
) -> Response:
    """Dial `number` showing `caller_id`, optionally reporting leg progress."""
    attrs = ""
    if status_callback_url:
        attrs = (
            f' statusCallback="{_xml_escape(status_callback_url)}"'
            ' statusCallbackMethod="POST"'
            ' statusCallbackEvent="initiated ringing answered completed"'
        )
    tw = f"""
  <Dial callerId="{_xml_escape(caller_id)}">
    <Number{attrs}>{_xml_escape(number)}</Number>
  </Dial>
"""
    return twiml_response(tw)
